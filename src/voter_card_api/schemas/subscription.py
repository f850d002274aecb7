"""Pydantic v2 schemas for event subscriptions."""

from pydantic import BaseModel


class SubscribeRequest(BaseModel):
    """Optional subscription preferences."""

    notify_on_update: bool = True


class SubscriptionResponse(BaseModel):
    """Subscription state of the caller for one event."""

    event_id: str
    subscribed: bool
    notify_on_update: bool | None = None
