"""Decision ledger ORM model — one full decision snapshot per identity and ballot."""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from voter_card_api.models.base import Base, JSONType, OwnerMixin, TimestampMixin, UUIDMixin


class VoterDecision(Base, UUIDMixin, OwnerMixin, TimestampMixin):
    """Latest measure decisions, candidate selections, and notes for a ballot."""

    __tablename__ = "voter_decisions"

    ballot_id: Mapped[str] = mapped_column(String(100), nullable=False)
    # Loose reference: decisions may be recorded before an event is linked.
    event_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    measure_decisions: Mapped[dict] = mapped_column(JSONType, nullable=False)
    candidate_selections: Mapped[dict] = mapped_column(JSONType, nullable=False)
    notes: Mapped[dict] = mapped_column(JSONType, nullable=False)

    __table_args__ = (UniqueConstraint("owner_kind", "owner_id", "ballot_id", name="uq_voter_decision_owner_ballot"),)
