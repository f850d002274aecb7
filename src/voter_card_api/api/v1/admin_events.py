"""Administrative election event endpoints. All require the admin role.

GET /admin/events — all non-archived events
POST /admin/events — create event
GET /admin/events/archived — archived events
PATCH /admin/events/{id} — update event
DELETE /admin/events/{id} — hard delete event
POST /admin/events/{id}/archive — soft delete
POST /admin/events/{id}/restore — undo archive
POST /admin/events/sweep — record notifications for passed events
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.config import Settings, get_settings
from voter_card_api.core.dependencies import get_async_session, require_admin
from voter_card_api.core.security import TokenClaims
from voter_card_api.schemas.election_event import (
    ElectionEventCreateRequest,
    ElectionEventResponse,
    ElectionEventUpdateRequest,
    SweepResponse,
)
from voter_card_api.services import election_event_service
from voter_card_api.services.election_event_service import EventInUseError, UnsupportedStateError

admin_events_router = APIRouter(prefix="/admin/events", tags=["admin"])

_NOT_FOUND = "Election event not found."


@admin_events_router.get("", response_model=list[ElectionEventResponse])
async def list_all_events(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _admin: Annotated[TokenClaims, Depends(require_admin)],
) -> list[ElectionEventResponse]:
    """List every non-archived event regardless of state or visibility."""
    return await election_event_service.list_all_events(session)


@admin_events_router.post("", response_model=ElectionEventResponse, status_code=201)
async def create_event(
    request: ElectionEventCreateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    _admin: Annotated[TokenClaims, Depends(require_admin)],
) -> ElectionEventResponse:
    """Create a new election event."""
    try:
        event = await election_event_service.create_event(
            session, request, supported_states=settings.supported_state_list
        )
    except UnsupportedStateError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return election_event_service.build_event_response(event)


@admin_events_router.get("/archived", response_model=list[ElectionEventResponse])
async def list_archived_events(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _admin: Annotated[TokenClaims, Depends(require_admin)],
) -> list[ElectionEventResponse]:
    """List archived events, most recent first."""
    return await election_event_service.list_archived_events(session)


@admin_events_router.post("/sweep", response_model=SweepResponse)
async def sweep_events(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _admin: Annotated[TokenClaims, Depends(require_admin)],
) -> SweepResponse:
    """Run the passed-event sweep immediately."""
    created = await election_event_service.sweep_passed_events(session)
    return SweepResponse(notifications_created=created)


@admin_events_router.patch("/{event_id}", response_model=ElectionEventResponse)
async def update_event(
    event_id: str,
    request: ElectionEventUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    _admin: Annotated[TokenClaims, Depends(require_admin)],
) -> ElectionEventResponse:
    """Update election event metadata."""
    try:
        event = await election_event_service.update_event(
            session, event_id, request, supported_states=settings.supported_state_list
        )
    except UnsupportedStateError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if event is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return election_event_service.build_event_response(event)


@admin_events_router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _admin: Annotated[TokenClaims, Depends(require_admin)],
) -> Response:
    """Permanently delete an event that no voter card references."""
    try:
        deleted = await election_event_service.delete_event(session, event_id)
    except EventInUseError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    if not deleted:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return Response(status_code=204)


@admin_events_router.post("/{event_id}/archive", response_model=ElectionEventResponse)
async def archive_event(
    event_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _admin: Annotated[TokenClaims, Depends(require_admin)],
) -> ElectionEventResponse:
    """Hide an event from listings while keeping it resolvable by id."""
    event = await election_event_service.archive_event(session, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return election_event_service.build_event_response(event)


@admin_events_router.post("/{event_id}/restore", response_model=ElectionEventResponse)
async def restore_event(
    event_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _admin: Annotated[TokenClaims, Depends(require_admin)],
) -> ElectionEventResponse:
    """Return an archived event to listings."""
    event = await election_event_service.restore_event(session, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return election_event_service.build_event_response(event)
