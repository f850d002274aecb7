"""Pydantic v2 schemas for product analytics."""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field


class TrackEventRequest(BaseModel):
    """Client-reported analytics signal."""

    event_type: str = Field(min_length=1, max_length=50, pattern=r"^[a-z][a-z0-9_]*$")
    event_data: dict[str, Any] = Field(default_factory=dict)
    state: str | None = Field(default=None, min_length=2, max_length=2)


class DailyVisitCount(BaseModel):
    """Page views recorded on one UTC day."""

    day: date
    count: int


class AnalyticsSummaryResponse(BaseModel):
    """Aggregate funnel and traffic metrics."""

    total_visitors: int
    decisions_started: int
    cards_finalized: int
    completion_rate: float
    state_breakdown: dict[str, int]
    daily_visits: list[DailyVisitCount]
