"""Derived election event status.

An event's status is a pure function of its election date and the current
date. It is recomputed on every read and never stored.
"""

from datetime import UTC, date, datetime, timedelta
from enum import StrEnum

CURRENT_WINDOW_DAYS = 7


class EventStatus(StrEnum):
    """Temporal status of an election event."""

    UPCOMING = "upcoming"
    CURRENT = "current"
    PASSED = "passed"


STATUS_PRIORITY: dict[EventStatus, int] = {
    EventStatus.UPCOMING: 0,
    EventStatus.CURRENT: 1,
    EventStatus.PASSED: 2,
}


def today_utc() -> date:
    """Return the current calendar date in UTC."""
    return datetime.now(UTC).date()


def to_utc_date(now: date | datetime) -> date:
    """Reduce a date or datetime to a calendar date, converting aware datetimes to UTC."""
    if isinstance(now, datetime):
        if now.tzinfo is not None:
            now = now.astimezone(UTC)
        return now.date()
    return now


def compute_event_status(election_date: date, now: date | datetime | None = None) -> EventStatus:
    """Derive the status of an event.

    ``now < election_date`` is upcoming, ``election_date <= now <= election_date + 7 days``
    is current, anything later is passed. Comparison happens at calendar-date
    granularity; aware datetimes are converted to UTC first.

    Args:
        election_date: The event's election date.
        now: Reference point; defaults to today's UTC date.

    Returns:
        The derived EventStatus.
    """
    today = today_utc() if now is None else to_utc_date(now)
    if today < election_date:
        return EventStatus.UPCOMING
    if today <= election_date + timedelta(days=CURRENT_WINDOW_DAYS):
        return EventStatus.CURRENT
    return EventStatus.PASSED


def listing_sort_key(election_date: date, now: date | datetime | None = None) -> tuple[int, date]:
    """Sort key ordering events upcoming, current, passed, then by date ascending."""
    return (STATUS_PRIORITY[compute_event_status(election_date, now)], election_date)
