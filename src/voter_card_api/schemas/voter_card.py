"""Pydantic v2 schemas for finalized voter cards.

Two response shapes exist: the owner view (full stored card, including the
owning identity) and the public view (hidden items removed, notes dropped when
``show_notes`` is off, no owner identifiers).
"""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CardTemplate = Literal["minimal", "bold", "professional"]


class VoterCardDecision(BaseModel):
    """One line item on a voter card."""

    type: Literal["measure", "candidate"]
    title: str = Field(min_length=1, max_length=500)
    decision: str = Field(max_length=500)
    hidden: bool | None = None
    note: str | None = None
    description: str | None = None


# --- Request schemas ---


class FinalizeCardRequest(BaseModel):
    """Snapshot of the current decisions to store as the card for an event."""

    event_id: str = Field(min_length=1, max_length=100)
    ballot_id: str | None = Field(default=None, max_length=100)
    template: CardTemplate
    location: str = Field(min_length=1, max_length=500)
    state: str | None = Field(default=None, min_length=2, max_length=2)
    election_date: str = Field(min_length=1, max_length=40)
    election_type: str = Field(min_length=1, max_length=40)
    decisions: list[VoterCardDecision] = Field(default_factory=list)
    show_notes: bool = True


class VoterCardUpdateRequest(BaseModel):
    """Field-level edits to an existing card. Owner and event are not editable."""

    model_config = ConfigDict(extra="forbid")

    template: CardTemplate | None = None
    location: str | None = Field(default=None, min_length=1, max_length=500)
    state: str | None = Field(default=None, min_length=2, max_length=2)
    election_date: str | None = Field(default=None, min_length=1, max_length=40)
    election_type: str | None = Field(default=None, min_length=1, max_length=40)
    decisions: list[VoterCardDecision] | None = None
    show_notes: bool | None = None
    is_public: bool | None = None


# --- Response schemas ---


class PublicVoterCardResponse(BaseModel):
    """Card as rendered for display to anyone allowed to view it."""

    id: uuid.UUID
    event_id: str
    template: str
    location: str
    state: str | None = None
    election_date: str
    election_type: str
    decisions: list[VoterCardDecision]
    show_notes: bool
    share_url: str | None = None
    created_at: datetime
    updated_at: datetime


class VoterCardResponse(PublicVoterCardResponse):
    """Full stored card, returned only to its owner."""

    model_config = {"from_attributes": True}

    owner_kind: str
    owner_id: str
    ballot_id: str | None = None
    is_public: bool
