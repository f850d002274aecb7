"""Pydantic v2 schemas for the AI-assisted text endpoints."""

from typing import Literal

from pydantic import BaseModel, Field


class SimplifyRequest(BaseModel):
    """Ballot measure text to simplify."""

    original_text: str = Field(min_length=1, max_length=50_000)
    title: str = Field(min_length=1, max_length=500)


class MeasureSummary(BaseModel):
    """Plain-language summaries of a ballot measure."""

    one_sentence: str
    simple: str
    detailed: str
    fiscal_impact: str | None = None
    key_points: list[str] = Field(default_factory=list)


class BiasCheckRequest(BaseModel):
    """Content to check for one-sided framing."""

    content: str = Field(min_length=1, max_length=50_000)
    kind: Literal["measure", "candidate"]


class BiasReport(BaseModel):
    """Bias assessment returned by the checker."""

    score: int = Field(ge=0, le=100)
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    is_balanced: bool
