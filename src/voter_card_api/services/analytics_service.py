"""Analytics service — append-only product signals and funnel summary.

Signals are written in the caller's transaction so a signal is never recorded
for a decision or card write that was rolled back.
"""

from datetime import datetime, timedelta
from typing import Any

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.identity import Identity
from voter_card_api.models.analytics_event import AnalyticsEvent
from voter_card_api.models.base import utcnow
from voter_card_api.schemas.analytics import AnalyticsSummaryResponse, DailyVisitCount

DECISIONS_STARTED = "decisions_started"
VOTER_CARD_FINALIZED = "voter_card_finalized"
PAGE_VIEW = "page_view"

DAILY_VISITS_WINDOW_DAYS = 30


def track_event(
    session: AsyncSession,
    event_type: str,
    event_data: dict[str, Any] | None = None,
    identity: Identity | None = None,
    state: str | None = None,
) -> AnalyticsEvent:
    """Stage an analytics event on the session (flushed with the caller's commit).

    Args:
        session: Async database session.
        event_type: Signal name, e.g. ``decisions_started``.
        event_data: Arbitrary JSON-serializable payload.
        identity: Identity the signal is attributed to, if any.
        state: Two-letter state code for geographic breakdowns.

    Returns:
        The pending AnalyticsEvent.
    """
    event = AnalyticsEvent(
        event_type=event_type,
        event_data=event_data or {},
        owner_kind=identity.owner_kind.value if identity is not None else None,
        owner_id=identity.owner_id if identity is not None else None,
        state=state.upper() if state else None,
    )
    session.add(event)
    logger.debug("Tracked analytics event {}", event_type)
    return event


async def record_event(
    session: AsyncSession,
    event_type: str,
    event_data: dict[str, Any] | None = None,
    identity: Identity | None = None,
    state: str | None = None,
) -> None:
    """Track an analytics event and commit it immediately (client-reported signals)."""
    track_event(session, event_type, event_data, identity, state)
    await session.commit()


async def get_summary(session: AsyncSession, *, now: datetime | None = None) -> AnalyticsSummaryResponse:
    """Aggregate funnel and traffic metrics.

    Args:
        session: Async database session.
        now: End of the daily-visits window (defaults to the current time).

    Returns:
        Distinct visitors with a ``page_view``, counts of started decision
        sets and finalized cards, the completion rate as a percentage, a
        per-state signal breakdown, and page views per day over the last
        30 days (oldest first).
    """
    counts_result = await session.execute(
        select(AnalyticsEvent.event_type, func.count(AnalyticsEvent.id))
        .where(AnalyticsEvent.event_type.in_([DECISIONS_STARTED, VOTER_CARD_FINALIZED]))
        .group_by(AnalyticsEvent.event_type)
    )
    counts = {event_type: count for event_type, count in counts_result.all()}
    started = counts.get(DECISIONS_STARTED, 0)
    finalized = counts.get(VOTER_CARD_FINALIZED, 0)

    state_result = await session.execute(
        select(AnalyticsEvent.state, func.count(AnalyticsEvent.id))
        .where(AnalyticsEvent.state.is_not(None))
        .group_by(AnalyticsEvent.state)
    )
    state_breakdown = {state: count for state, count in state_result.all()}

    total_visitors = await session.scalar(
        select(func.count(AnalyticsEvent.owner_id.distinct())).where(AnalyticsEvent.event_type == PAGE_VIEW)
    )

    since = (now or utcnow()) - timedelta(days=DAILY_VISITS_WINDOW_DAYS)
    visit_day = func.date(AnalyticsEvent.created_at)
    daily_result = await session.execute(
        select(visit_day, func.count(AnalyticsEvent.id))
        .where(AnalyticsEvent.event_type == PAGE_VIEW, AnalyticsEvent.created_at >= since)
        .group_by(visit_day)
        .order_by(visit_day)
    )
    daily_visits = [DailyVisitCount(day=day, count=count) for day, count in daily_result.all()]

    completion_rate = round(finalized / started * 100, 2) if started > 0 else 0.0

    return AnalyticsSummaryResponse(
        total_visitors=total_visitors or 0,
        decisions_started=started,
        cards_finalized=finalized,
        completion_rate=completion_rate,
        state_breakdown=state_breakdown,
        daily_visits=daily_visits,
    )
