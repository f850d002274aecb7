"""Election event service — event store, derived status, and lifecycle sweep.

Orchestrates event CRUD for administrators, public per-state listings, and the
observational sweep that records notifications once an event has passed.
Status is computed from ``election_date`` on every read and never stored.
"""

import asyncio
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from loguru import logger
from sqlalchemy import delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.identity import Identity
from voter_card_api.lib.event_lifecycle import (
    CURRENT_WINDOW_DAYS,
    compute_event_status,
    generate_event_id,
    listing_sort_key,
    to_utc_date,
    today_utc,
)
from voter_card_api.models.election_event import ElectionEvent, EventNotification
from voter_card_api.models.subscription import EventSubscription
from voter_card_api.models.voter_card import FinalizedVoterCard
from voter_card_api.schemas.election_event import (
    ElectionEventCreateRequest,
    ElectionEventResponse,
    ElectionEventUpdateRequest,
)

NOTIFICATION_EVENT_UPDATED = "event_updated"
NOTIFICATION_EVENT_PASSED = "event_passed"

_NON_NULLABLE_FIELDS = frozenset({"state", "title", "event_type", "election_date", "visibility"})


class UnsupportedStateError(ValueError):
    """Raised when an event references a state without ballot coverage."""


class EventInUseError(ValueError):
    """Raised when hard-deleting an event that finalized cards still reference."""


def _ensure_supported_state(state: str, supported_states: Iterable[str]) -> None:
    if state.upper() not in {s.upper() for s in supported_states}:
        msg = f"State '{state}' is not supported."
        raise UnsupportedStateError(msg)


def build_event_response(
    event: ElectionEvent,
    *,
    is_subscribed: bool | None = None,
    now: date | datetime | None = None,
) -> ElectionEventResponse:
    """Build an ElectionEventResponse with the status derived at call time."""
    return ElectionEventResponse(
        id=event.id,
        state=event.state,
        county=event.county,
        title=event.title,
        event_type=event.event_type,
        election_date=event.election_date,
        registration_deadline=event.registration_deadline,
        description=event.description,
        ballot_id=event.ballot_id,
        status=compute_event_status(event.election_date, now),
        visibility=event.visibility,
        archived=event.archived,
        is_subscribed=is_subscribed,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


async def _subscribed_event_ids(
    session: AsyncSession,
    identity: Identity | None,
    event_ids: list[str],
) -> set[str]:
    """Return the subset of ``event_ids`` the identity follows."""
    if identity is None or not event_ids:
        return set()
    result = await session.execute(
        select(EventSubscription.event_id).where(
            EventSubscription.owner_kind == identity.owner_kind.value,
            EventSubscription.owner_id == identity.owner_id,
            EventSubscription.event_id.in_(event_ids),
        )
    )
    return set(result.scalars().all())


async def create_event(
    session: AsyncSession,
    request: ElectionEventCreateRequest,
    *,
    supported_states: Iterable[str],
) -> ElectionEvent:
    """Create a new election event.

    Args:
        session: Async database session.
        request: Event creation request.
        supported_states: State codes with ballot coverage.

    Returns:
        The created ElectionEvent.

    Raises:
        UnsupportedStateError: If the state is not supported.
    """
    _ensure_supported_state(request.state, supported_states)

    event = ElectionEvent(
        id=generate_event_id(request.state, request.event_type),
        state=request.state.upper(),
        county=request.county,
        title=request.title,
        event_type=request.event_type,
        election_date=request.election_date,
        registration_deadline=request.registration_deadline,
        description=request.description,
        ballot_id=request.ballot_id,
        visibility=request.visibility,
        archived=False,
    )
    session.add(event)
    await session.commit()
    await session.refresh(event)
    logger.info("Created election event {} ({}, {})", event.id, event.state, event.election_date)
    return event


async def get_event(session: AsyncSession, event_id: str) -> ElectionEvent | None:
    """Get an event by id, archived or not.

    Args:
        session: Async database session.
        event_id: The event id.

    Returns:
        ElectionEvent instance or None if not found.
    """
    result = await session.execute(select(ElectionEvent).where(ElectionEvent.id == event_id))
    return result.scalar_one_or_none()


async def get_event_response(
    session: AsyncSession,
    event_id: str,
    identity: Identity | None = None,
    *,
    now: date | datetime | None = None,
) -> ElectionEventResponse | None:
    """Get an event by id annotated with the requester's subscription state."""
    event = await get_event(session, event_id)
    if event is None:
        return None
    subscribed = await _subscribed_event_ids(session, identity, [event.id])
    return build_event_response(
        event,
        is_subscribed=event.id in subscribed if identity is not None else None,
        now=now,
    )


async def list_events_for_state(
    session: AsyncSession,
    state: str,
    identity: Identity | None = None,
    *,
    supported_states: Iterable[str],
    now: date | datetime | None = None,
) -> list[ElectionEventResponse]:
    """List public, non-archived events for a state.

    Events are ordered upcoming, current, passed and then by election date
    ascending. Each carries ``is_subscribed`` for the requester (False for
    anonymous listings without any identity).

    Args:
        session: Async database session.
        state: Two-letter state code (case-insensitive).
        identity: Optional requester identity.
        supported_states: State codes with ballot coverage.
        now: Reference point for status derivation.

    Returns:
        Sorted event responses.

    Raises:
        UnsupportedStateError: If the state is not supported.
    """
    _ensure_supported_state(state, supported_states)

    result = await session.execute(
        select(ElectionEvent).where(
            ElectionEvent.state == state.upper(),
            ElectionEvent.visibility == "public",
            ElectionEvent.archived.is_(False),
        )
    )
    events = list(result.scalars().all())
    subscribed = await _subscribed_event_ids(session, identity, [e.id for e in events])

    events.sort(key=lambda e: listing_sort_key(e.election_date, now))
    return [build_event_response(e, is_subscribed=e.id in subscribed, now=now) for e in events]


async def list_all_events(
    session: AsyncSession,
    *,
    now: date | datetime | None = None,
) -> list[ElectionEventResponse]:
    """List every non-archived event (any state or visibility) for administrators."""
    result = await session.execute(select(ElectionEvent).where(ElectionEvent.archived.is_(False)))
    events = sorted(result.scalars().all(), key=lambda e: listing_sort_key(e.election_date, now))
    return [build_event_response(e, now=now) for e in events]


async def list_archived_events(
    session: AsyncSession,
    *,
    now: date | datetime | None = None,
) -> list[ElectionEventResponse]:
    """List archived events, most recent election first."""
    result = await session.execute(
        select(ElectionEvent).where(ElectionEvent.archived.is_(True)).order_by(ElectionEvent.election_date.desc())
    )
    return [build_event_response(e, now=now) for e in result.scalars().all()]


async def update_event(
    session: AsyncSession,
    event_id: str,
    request: ElectionEventUpdateRequest,
    *,
    supported_states: Iterable[str],
) -> ElectionEvent | None:
    """Apply a partial update to an event.

    Explicit nulls are ignored for required columns. When at least one field
    changes, an ``event_updated`` notification is recorded for followers.

    Args:
        session: Async database session.
        event_id: The event id.
        request: Partial update fields.
        supported_states: State codes with ballot coverage.

    Returns:
        Updated ElectionEvent or None if not found.

    Raises:
        UnsupportedStateError: If the update moves the event to an unsupported state.
    """
    event = await get_event(session, event_id)
    if event is None:
        return None

    update_data = request.model_dump(exclude_unset=True)
    if update_data.get("state") is not None:
        _ensure_supported_state(update_data["state"], supported_states)

    changed: list[str] = []
    for field, value in update_data.items():
        if value is None and field in _NON_NULLABLE_FIELDS:
            continue
        if getattr(event, field) != value:
            setattr(event, field, value)
            changed.append(field)

    if changed:
        session.add(
            EventNotification(
                event_id=event.id,
                title=f"{event.title} was updated",
                message=f"Updated fields: {', '.join(sorted(changed))}",
                notification_type=NOTIFICATION_EVENT_UPDATED,
            )
        )
        logger.info("Updated election event {} fields {}", event.id, changed)

    await session.commit()
    await session.refresh(event)
    return event


async def _set_archived(session: AsyncSession, event_id: str, archived: bool) -> ElectionEvent | None:
    event = await get_event(session, event_id)
    if event is None:
        return None
    event.archived = archived
    await session.commit()
    await session.refresh(event)
    logger.info("{} election event {}", "Archived" if archived else "Restored", event.id)
    return event


async def archive_event(session: AsyncSession, event_id: str) -> ElectionEvent | None:
    """Soft-delete an event: hidden from listings, still resolvable by id."""
    return await _set_archived(session, event_id, True)


async def restore_event(session: AsyncSession, event_id: str) -> ElectionEvent | None:
    """Undo :func:`archive_event`."""
    return await _set_archived(session, event_id, False)


async def delete_event(session: AsyncSession, event_id: str) -> bool:
    """Hard-delete an event together with its subscriptions and notifications.

    Args:
        session: Async database session.
        event_id: The event id.

    Returns:
        True if deleted, False if no such event exists.

    Raises:
        EventInUseError: If finalized voter cards reference the event.
    """
    event = await get_event(session, event_id)
    if event is None:
        return False

    card_count = await session.scalar(
        select(func.count(FinalizedVoterCard.id)).where(FinalizedVoterCard.event_id == event_id)
    )
    if card_count:
        msg = f"Event '{event_id}' is referenced by {card_count} voter card(s); archive it instead."
        raise EventInUseError(msg)

    await session.execute(delete(EventSubscription).where(EventSubscription.event_id == event_id))
    await session.execute(delete(EventNotification).where(EventNotification.event_id == event_id))
    await session.delete(event)
    await session.commit()
    logger.info("Deleted election event {}", event_id)
    return True


async def sweep_passed_events(
    session: AsyncSession,
    *,
    now: date | datetime | None = None,
) -> int:
    """Record an ``event_passed`` notification for each newly passed event.

    Purely observational: status is derived, so skipping a sweep never leaves
    any record inconsistent. Re-running is idempotent.

    Args:
        session: Async database session.
        now: Reference point for status derivation.

    Returns:
        Number of notifications created.
    """
    today = today_utc() if now is None else to_utc_date(now)
    cutoff = today - timedelta(days=CURRENT_WINDOW_DAYS)

    already_notified = exists().where(
        EventNotification.event_id == ElectionEvent.id,
        EventNotification.notification_type == NOTIFICATION_EVENT_PASSED,
    )
    result = await session.execute(
        select(ElectionEvent).where(ElectionEvent.election_date < cutoff, ~already_notified)
    )

    created = 0
    for event in result.scalars().all():
        if compute_event_status(event.election_date, now) != "passed":
            continue
        session.add(
            EventNotification(
                event_id=event.id,
                title=f"{event.title} has passed",
                message=f"The {event.event_type} election on {event.election_date.isoformat()} is now in history.",
                notification_type=NOTIFICATION_EVENT_PASSED,
            )
        )
        created += 1

    if created:
        await session.commit()
        logger.info("Event sweep recorded {} passed event(s)", created)
    return created


async def event_sweep_loop(interval: int) -> None:
    """Background asyncio loop that runs :func:`sweep_passed_events`.

    Args:
        interval: Seconds between sweep cycles.
    """
    from voter_card_api.core.database import session_scope

    logger.info("Event sweep loop started (interval={}s)", interval)

    while True:
        try:
            await asyncio.sleep(interval)
            async with session_scope() as session:
                await sweep_passed_events(session)
        except asyncio.CancelledError:
            logger.info("Event sweep loop cancelled")
            break
        except Exception:
            logger.exception("Event sweep loop error")
