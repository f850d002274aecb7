"""Pydantic v2 schemas for the decision ledger."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

DecisionOption = Literal["yes", "no", "undecided"]


class MeasureDecision(BaseModel):
    """A voter's decision on one ballot measure."""

    decision: DecisionOption
    note: str | None = None


class DecisionUpsertRequest(BaseModel):
    """Full decision snapshot for one ballot; replaces whatever was stored."""

    event_id: str | None = Field(default=None, max_length=100)
    measure_decisions: dict[str, MeasureDecision] = Field(default_factory=dict)
    candidate_selections: dict[str, str] = Field(default_factory=dict)
    notes: dict[str, str] = Field(default_factory=dict)


class DecisionSetResponse(BaseModel):
    """Stored decision snapshot for an identity and ballot."""

    ballot_id: str
    event_id: str | None = None
    measure_decisions: dict[str, MeasureDecision]
    candidate_selections: dict[str, str]
    notes: dict[str, str]
    created_at: datetime
    updated_at: datetime


class DecisionClearResponse(BaseModel):
    """Result of an explicit data clear."""

    deleted: int
