"""ORM model registry — import all models so Alembic autogenerate discovers them."""

from voter_card_api.models.analytics_event import AnalyticsEvent
from voter_card_api.models.election_event import ElectionEvent, EventNotification
from voter_card_api.models.subscription import EventSubscription
from voter_card_api.models.voter_card import FinalizedVoterCard
from voter_card_api.models.voter_decision import VoterDecision

__all__ = [
    "AnalyticsEvent",
    "ElectionEvent",
    "EventNotification",
    "EventSubscription",
    "FinalizedVoterCard",
    "VoterDecision",
]
