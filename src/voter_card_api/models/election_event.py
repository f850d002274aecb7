"""Election event ORM models.

Provides ElectionEvent and EventNotification. An event's status is derived
from ``election_date`` at read time and deliberately has no column.
"""

from datetime import date, datetime

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from voter_card_api.models.base import Base, TimestampMixin, utcnow


class ElectionEvent(Base, TimestampMixin):
    """An election a voter can review, follow, and build a card for."""

    __tablename__ = "election_events"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    county: Mapped[str | None] = mapped_column(Text, nullable=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    event_type: Mapped[str] = mapped_column(String(20), nullable=False)
    election_date: Mapped[date] = mapped_column(Date, nullable=False)
    registration_deadline: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    ballot_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    visibility: Mapped[str] = mapped_column(String(10), nullable=False, default="private", server_default="private")
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    __table_args__ = (
        CheckConstraint(
            "event_type IN ('primary', 'general', 'midterm', 'special', 'runoff')",
            name="ck_election_event_type",
        ),
        CheckConstraint("visibility IN ('public', 'private')", name="ck_election_event_visibility"),
        Index("idx_election_events_state_listing", "state", "visibility", "archived"),
        Index("idx_election_events_election_date", "election_date"),
    )


class EventNotification(Base):
    """A notice for followers of an event (admin update or the event passing)."""

    __tablename__ = "event_notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("election_events.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    notification_type: Mapped[str] = mapped_column(String(30), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "notification_type IN ('event_updated', 'event_passed')",
            name="ck_event_notification_type",
        ),
        Index("idx_event_notifications_event_type", "event_id", "notification_type"),
    )
