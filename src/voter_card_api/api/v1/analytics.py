"""Analytics API endpoints.

POST /analytics/events — record a client-reported signal
GET /analytics — funnel summary (admin)
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.dependencies import get_async_session, get_optional_identity, require_admin
from voter_card_api.core.identity import Identity
from voter_card_api.core.security import TokenClaims
from voter_card_api.schemas.analytics import AnalyticsSummaryResponse, TrackEventRequest
from voter_card_api.schemas.common import SuccessResponse
from voter_card_api.services import analytics_service

analytics_router = APIRouter(prefix="/analytics", tags=["analytics"])


@analytics_router.post("/events", response_model=SuccessResponse, status_code=201)
async def track_event(
    request: TrackEventRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> SuccessResponse:
    """Record an analytics signal. Anonymous callers are allowed."""
    await analytics_service.record_event(
        session,
        request.event_type,
        request.event_data,
        identity=identity,
        state=request.state,
    )
    return SuccessResponse()


@analytics_router.get("", response_model=AnalyticsSummaryResponse)
async def get_summary(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _admin: Annotated[TokenClaims, Depends(require_admin)],
) -> AnalyticsSummaryResponse:
    """Decision-to-card completion metrics. Admin-only."""
    return await analytics_service.get_summary(session)
