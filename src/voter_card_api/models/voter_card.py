"""Finalized voter card ORM model."""

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String, Text, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column

from voter_card_api.models.base import Base, JSONType, OwnerMixin, TimestampMixin, UUIDMixin


class FinalizedVoterCard(Base, UUIDMixin, OwnerMixin, TimestampMixin):
    """Shareable snapshot of a voter's decisions for one election event.

    At most one row exists per (owner_kind, owner_id, event_id); finalize is an
    upsert against that unique key.
    """

    __tablename__ = "finalized_voter_cards"

    event_id: Mapped[str] = mapped_column(String(100), ForeignKey("election_events.id"), nullable=False)
    ballot_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    template: Mapped[str] = mapped_column(String(20), nullable=False)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True)
    election_date: Mapped[str] = mapped_column(String(40), nullable=False)
    election_type: Mapped[str] = mapped_column(String(40), nullable=False)
    decisions: Mapped[list] = mapped_column(JSONType, nullable=False)
    show_notes: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    share_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("owner_kind", "owner_id", "event_id", name="uq_finalized_voter_card_owner_event"),
        CheckConstraint("template IN ('minimal', 'bold', 'professional')", name="ck_finalized_voter_card_template"),
        Index("idx_finalized_voter_cards_event_id", "event_id"),
    )
