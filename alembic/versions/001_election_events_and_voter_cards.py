"""Create election events, notifications, subscriptions, decisions, voter cards, and analytics tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "election_events",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("state", sa.String(2), nullable=False),
        sa.Column("county", sa.Text, nullable=True),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("event_type", sa.String(20), nullable=False),
        sa.Column("election_date", sa.Date, nullable=False),
        sa.Column("registration_deadline", sa.Date, nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("ballot_id", sa.String(100), nullable=True),
        sa.Column("visibility", sa.String(10), nullable=False, server_default="private"),
        sa.Column("archived", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "event_type IN ('primary', 'general', 'midterm', 'special', 'runoff')",
            name="ck_election_event_type",
        ),
        sa.CheckConstraint("visibility IN ('public', 'private')", name="ck_election_event_visibility"),
    )
    op.create_index("idx_election_events_state_listing", "election_events", ["state", "visibility", "archived"])
    op.create_index("idx_election_events_election_date", "election_events", ["election_date"])

    op.create_table(
        "event_notifications",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "event_id",
            sa.String(100),
            sa.ForeignKey("election_events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("notification_type", sa.String(30), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "notification_type IN ('event_updated', 'event_passed')",
            name="ck_event_notification_type",
        ),
    )
    op.create_index(
        "idx_event_notifications_event_type", "event_notifications", ["event_id", "notification_type"]
    )

    op.create_table(
        "event_subscriptions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("owner_kind", sa.String(10), nullable=False),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column(
            "event_id",
            sa.String(100),
            sa.ForeignKey("election_events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("notify_on_update", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("owner_kind", "owner_id", "event_id", name="uq_event_subscription_owner_event"),
    )
    op.create_index("idx_event_subscriptions_event_id", "event_subscriptions", ["event_id"])

    op.create_table(
        "voter_decisions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("owner_kind", sa.String(10), nullable=False),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("ballot_id", sa.String(100), nullable=False),
        sa.Column("event_id", sa.String(100), nullable=True),
        sa.Column("measure_decisions", JSONB, nullable=False),
        sa.Column("candidate_selections", JSONB, nullable=False),
        sa.Column("notes", JSONB, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("owner_kind", "owner_id", "ballot_id", name="uq_voter_decision_owner_ballot"),
    )

    op.create_table(
        "finalized_voter_cards",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("owner_kind", sa.String(10), nullable=False),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("event_id", sa.String(100), sa.ForeignKey("election_events.id"), nullable=False),
        sa.Column("ballot_id", sa.String(100), nullable=True),
        sa.Column("template", sa.String(20), nullable=False),
        sa.Column("location", sa.Text, nullable=False),
        sa.Column("state", sa.String(2), nullable=True),
        sa.Column("election_date", sa.String(40), nullable=False),
        sa.Column("election_type", sa.String(40), nullable=False),
        sa.Column("decisions", JSONB, nullable=False),
        sa.Column("show_notes", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("share_url", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("owner_kind", "owner_id", "event_id", name="uq_finalized_voter_card_owner_event"),
        sa.CheckConstraint(
            "template IN ('minimal', 'bold', 'professional')",
            name="ck_finalized_voter_card_template",
        ),
    )
    op.create_index("idx_finalized_voter_cards_event_id", "finalized_voter_cards", ["event_id"])

    op.create_table(
        "analytics_events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("event_data", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("owner_kind", sa.String(10), nullable=True),
        sa.Column("owner_id", sa.String(255), nullable=True),
        sa.Column("state", sa.String(2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_analytics_events_event_type", "analytics_events", ["event_type"])
    op.create_index("idx_analytics_events_state", "analytics_events", ["state"])


def downgrade() -> None:
    op.drop_table("analytics_events")
    op.drop_table("finalized_voter_cards")
    op.drop_table("voter_decisions")
    op.drop_table("event_subscriptions")
    op.drop_table("event_notifications")
    op.drop_table("election_events")
