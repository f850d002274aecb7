"""Decision ledger API endpoints.

PUT /decisions/{ballot_id} — store the caller's full decision snapshot
GET /decisions/{ballot_id} — fetch the caller's stored snapshot
DELETE /decisions — clear the caller's decisions (one ballot or all)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.dependencies import get_async_session, get_identity
from voter_card_api.core.identity import Identity
from voter_card_api.schemas.decision import DecisionClearResponse, DecisionSetResponse, DecisionUpsertRequest
from voter_card_api.services import decision_service

decisions_router = APIRouter(prefix="/decisions", tags=["decisions"])


@decisions_router.put("/{ballot_id}", response_model=DecisionSetResponse)
async def upsert_decisions(
    ballot_id: str,
    request: DecisionUpsertRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> DecisionSetResponse:
    """Replace the stored decisions for a ballot with the submitted snapshot."""
    row = await decision_service.upsert_decisions(session, identity, ballot_id, request)
    return decision_service.build_decision_response(row)


@decisions_router.get("/{ballot_id}", response_model=DecisionSetResponse)
async def get_decisions(
    ballot_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> DecisionSetResponse:
    """Get the caller's stored decisions for a ballot."""
    row = await decision_service.get_decisions(session, identity, ballot_id)
    if row is None:
        raise HTTPException(status_code=404, detail="No decisions stored for this ballot.")
    return decision_service.build_decision_response(row)


@decisions_router.delete("", response_model=DecisionClearResponse)
async def clear_decisions(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_identity)],
    ballot_id: str | None = Query(default=None, description="Only clear this ballot"),
) -> DecisionClearResponse:
    """Delete the caller's stored decisions."""
    deleted = await decision_service.clear_decisions(session, identity, ballot_id)
    return DecisionClearResponse(deleted=deleted)
