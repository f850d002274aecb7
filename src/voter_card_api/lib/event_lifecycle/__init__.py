"""Election event lifecycle library — pure status derivation and id helpers.

Public API:
    - compute_event_status: Derive upcoming/current/passed from a date and "now"
    - listing_sort_key: Sort key used by event listings
    - generate_event_id: Build a new event id
    - to_utc_date: Reduce a reference point to a UTC calendar date
    - EventStatus: Status enum
"""

from voter_card_api.lib.event_lifecycle.identifiers import generate_event_id
from voter_card_api.lib.event_lifecycle.status import (
    CURRENT_WINDOW_DAYS,
    STATUS_PRIORITY,
    EventStatus,
    compute_event_status,
    listing_sort_key,
    to_utc_date,
    today_utc,
)

__all__ = [
    "CURRENT_WINDOW_DAYS",
    "STATUS_PRIORITY",
    "EventStatus",
    "compute_event_status",
    "generate_event_id",
    "listing_sort_key",
    "to_utc_date",
    "today_utc",
]
