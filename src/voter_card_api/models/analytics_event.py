"""Analytics event ORM model (append-only product signals)."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from voter_card_api.models.base import Base, JSONType, utcnow


class AnalyticsEvent(Base):
    """A single tracked signal such as ``decisions_started``."""

    __tablename__ = "analytics_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    event_data: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    owner_kind: Mapped[str | None] = mapped_column(String(10), nullable=True)
    owner_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_analytics_events_event_type", "event_type"),
        Index("idx_analytics_events_state", "state"),
    )
