"""Election event API endpoints for voters.

GET /states — states with ballot coverage
GET /events/state/{state} — public events for a state
GET /events/subscribed — events the caller follows
GET /events/notifications — notifications for followed events
GET /events/{id} — event detail
POST /events/{id}/subscribe — follow an event
DELETE /events/{id}/subscribe — stop following an event
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.config import Settings, get_settings
from voter_card_api.core.dependencies import get_async_session, get_identity, get_optional_identity
from voter_card_api.core.identity import Identity
from voter_card_api.schemas.election_event import (
    ElectionEventResponse,
    EventNotificationResponse,
    SupportedStatesResponse,
)
from voter_card_api.schemas.subscription import SubscribeRequest, SubscriptionResponse
from voter_card_api.services import election_event_service, subscription_service
from voter_card_api.services.election_event_service import UnsupportedStateError

events_router = APIRouter(prefix="/events", tags=["events"])
states_router = APIRouter(prefix="/states", tags=["events"])


@states_router.get("", response_model=SupportedStatesResponse)
async def list_supported_states(
    settings: Annotated[Settings, Depends(get_settings)],
) -> SupportedStatesResponse:
    """List the state codes events can be created and browsed for. Public endpoint."""
    return SupportedStatesResponse(supported=settings.supported_state_list)


@events_router.get("/state/{state}", response_model=list[ElectionEventResponse])
async def list_events_for_state(
    state: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> list[ElectionEventResponse]:
    """List public election events for a state, upcoming first. Public endpoint."""
    try:
        return await election_event_service.list_events_for_state(
            session,
            state,
            identity,
            supported_states=settings.supported_state_list,
        )
    except UnsupportedStateError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@events_router.get("/subscribed", response_model=list[ElectionEventResponse])
async def list_subscribed_events(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> list[ElectionEventResponse]:
    """List the events the caller follows, soonest first."""
    return await subscription_service.list_subscribed_events(session, identity)


@events_router.get("/notifications", response_model=list[EventNotificationResponse])
async def list_notifications(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_identity)],
    limit: int = Query(default=50, ge=1, le=200, description="Maximum notifications to return"),
) -> list[EventNotificationResponse]:
    """List notifications for followed events, newest first."""
    notifications = await subscription_service.list_notifications(session, identity, limit=limit)
    return [EventNotificationResponse.model_validate(n) for n in notifications]


@events_router.get("/{event_id}", response_model=ElectionEventResponse)
async def get_event(
    event_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> ElectionEventResponse:
    """Get an election event by id, including archived events. Public endpoint."""
    event = await election_event_service.get_event_response(session, event_id, identity)
    if event is None:
        raise HTTPException(status_code=404, detail="Election event not found.")
    return event


@events_router.post("/{event_id}/subscribe", response_model=SubscriptionResponse)
async def subscribe(
    event_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_identity)],
    request: Annotated[SubscribeRequest | None, Body()] = None,
) -> SubscriptionResponse:
    """Follow an election event. Repeating the call is harmless."""
    preferences = request or SubscribeRequest()
    subscription = await subscription_service.subscribe(
        session,
        identity,
        event_id,
        notify_on_update=preferences.notify_on_update,
    )
    if subscription is None:
        raise HTTPException(status_code=404, detail="Election event not found.")
    return SubscriptionResponse(
        event_id=event_id,
        subscribed=True,
        notify_on_update=subscription.notify_on_update,
    )


@events_router.delete("/{event_id}/subscribe", response_model=SubscriptionResponse)
async def unsubscribe(
    event_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> SubscriptionResponse:
    """Stop following an election event. Succeeds even if not subscribed."""
    await subscription_service.unsubscribe(session, identity, event_id)
    return SubscriptionResponse(event_id=event_id, subscribed=False)
