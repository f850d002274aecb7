"""Event subscription ORM model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column

from voter_card_api.models.base import Base, OwnerMixin, utcnow


class EventSubscription(Base, OwnerMixin):
    """An identity following an election event."""

    __tablename__ = "event_subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("election_events.id", ondelete="CASCADE"),
        nullable=False,
    )
    notify_on_update: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("owner_kind", "owner_id", "event_id", name="uq_event_subscription_owner_event"),
        Index("idx_event_subscriptions_event_id", "event_id"),
    )
