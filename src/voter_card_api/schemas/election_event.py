"""Pydantic v2 schemas for election event endpoints."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

EventType = Literal["primary", "general", "midterm", "special", "runoff"]
Visibility = Literal["public", "private"]
EventStatusValue = Literal["upcoming", "current", "passed"]


def _normalize_state(v: str | None) -> str | None:
    if v is None:
        return None
    return v.strip().upper()


# --- Request schemas ---


class ElectionEventCreateRequest(BaseModel):
    """Request body for creating an election event."""

    state: str = Field(min_length=2, max_length=2, description="Two-letter state code")
    county: str | None = Field(default=None, max_length=200)
    title: str = Field(min_length=1, max_length=500)
    event_type: EventType
    election_date: date
    registration_deadline: date | None = None
    description: str | None = None
    ballot_id: str | None = Field(default=None, min_length=1, max_length=100)
    visibility: Visibility = "private"

    @field_validator("state")
    @classmethod
    def normalize_state(cls, v: str | None) -> str | None:
        return _normalize_state(v)


class ElectionEventUpdateRequest(BaseModel):
    """Request body for updating an election event (partial update)."""

    state: str | None = Field(default=None, min_length=2, max_length=2)
    county: str | None = Field(default=None, max_length=200)
    title: str | None = Field(default=None, min_length=1, max_length=500)
    event_type: EventType | None = None
    election_date: date | None = None
    registration_deadline: date | None = None
    description: str | None = None
    ballot_id: str | None = Field(default=None, min_length=1, max_length=100)
    visibility: Visibility | None = None

    @field_validator("state")
    @classmethod
    def normalize_state(cls, v: str | None) -> str | None:
        return _normalize_state(v)


# --- Response schemas ---


class ElectionEventResponse(BaseModel):
    """Election event with its live-derived status."""

    id: str
    state: str
    county: str | None = None
    title: str
    event_type: str
    election_date: date
    registration_deadline: date | None = None
    description: str | None = None
    ballot_id: str | None = None
    status: EventStatusValue
    visibility: str
    archived: bool
    is_subscribed: bool | None = None
    created_at: datetime
    updated_at: datetime


class EventNotificationResponse(BaseModel):
    """Notification for a followed event."""

    model_config = {"from_attributes": True}

    id: int
    event_id: str
    title: str
    message: str
    notification_type: str
    created_at: datetime


class SweepResponse(BaseModel):
    """Result of an event lifecycle sweep."""

    notifications_created: int


class SupportedStatesResponse(BaseModel):
    """States with ballot coverage."""

    supported: list[str]
