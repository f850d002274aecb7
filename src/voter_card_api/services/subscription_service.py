"""Subscription service — which identities follow which election events.

Subscribe and unsubscribe are idempotent set-membership operations and are
independent of decisions and cards.
"""

from datetime import date, datetime

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.database import dialect_insert
from voter_card_api.core.identity import Identity
from voter_card_api.models.election_event import ElectionEvent, EventNotification
from voter_card_api.models.subscription import EventSubscription
from voter_card_api.schemas.election_event import ElectionEventResponse
from voter_card_api.services.election_event_service import build_event_response, get_event


async def get_subscription(
    session: AsyncSession,
    identity: Identity,
    event_id: str,
) -> EventSubscription | None:
    """Return the identity's subscription to an event, if any."""
    result = await session.execute(
        select(EventSubscription).where(
            EventSubscription.owner_kind == identity.owner_kind.value,
            EventSubscription.owner_id == identity.owner_id,
            EventSubscription.event_id == event_id,
        )
    )
    return result.scalar_one_or_none()


async def subscribe(
    session: AsyncSession,
    identity: Identity,
    event_id: str,
    *,
    notify_on_update: bool = True,
) -> EventSubscription | None:
    """Follow an event. Subscribing twice leaves a single subscription.

    An existing subscription keeps its original ``notify_on_update`` choice.

    Args:
        session: Async database session.
        identity: Subscribing visitor or user.
        event_id: Event to follow.
        notify_on_update: Whether to surface notifications for the event.

    Returns:
        The subscription, or None if the event does not exist.
    """
    if await get_event(session, event_id) is None:
        return None

    stmt = (
        dialect_insert(session, EventSubscription)
        .values(
            owner_kind=identity.owner_kind.value,
            owner_id=identity.owner_id,
            event_id=event_id,
            notify_on_update=notify_on_update,
        )
        .on_conflict_do_nothing(index_elements=["owner_kind", "owner_id", "event_id"])
    )
    result = await session.execute(stmt)
    await session.commit()
    if result.rowcount:
        logger.info("{} subscribed to event {}", identity.owner_kind, event_id)
    return await get_subscription(session, identity, event_id)


async def unsubscribe(session: AsyncSession, identity: Identity, event_id: str) -> None:
    """Stop following an event. A no-op when not subscribed."""
    result = await session.execute(
        delete(EventSubscription).where(
            EventSubscription.owner_kind == identity.owner_kind.value,
            EventSubscription.owner_id == identity.owner_id,
            EventSubscription.event_id == event_id,
        )
    )
    await session.commit()
    if result.rowcount:
        logger.info("{} unsubscribed from event {}", identity.owner_kind, event_id)


async def list_subscribed_events(
    session: AsyncSession,
    identity: Identity,
    *,
    now: date | datetime | None = None,
) -> list[ElectionEventResponse]:
    """Resolve an identity's subscriptions to live events.

    Subscriptions whose event no longer exists are skipped. Archived events
    are still returned since they remain resolvable by id.

    Returns:
        Events sorted by election date ascending, with live status.
    """
    result = await session.execute(
        select(ElectionEvent)
        .join(EventSubscription, EventSubscription.event_id == ElectionEvent.id)
        .where(
            EventSubscription.owner_kind == identity.owner_kind.value,
            EventSubscription.owner_id == identity.owner_id,
        )
        .order_by(ElectionEvent.election_date.asc(), ElectionEvent.id.asc())
    )
    return [build_event_response(event, is_subscribed=True, now=now) for event in result.scalars().all()]


async def list_notifications(
    session: AsyncSession,
    identity: Identity,
    *,
    limit: int = 50,
) -> list[EventNotification]:
    """Notifications for events the identity follows with ``notify_on_update`` on.

    Returns:
        Notifications, newest first.
    """
    result = await session.execute(
        select(EventNotification)
        .join(EventSubscription, EventSubscription.event_id == EventNotification.event_id)
        .where(
            EventSubscription.owner_kind == identity.owner_kind.value,
            EventSubscription.owner_id == identity.owner_id,
            EventSubscription.notify_on_update.is_(True),
        )
        .order_by(EventNotification.created_at.desc(), EventNotification.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
