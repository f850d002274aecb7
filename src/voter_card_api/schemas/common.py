"""Common Pydantic v2 schemas shared across the API."""

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    """Acknowledgement for idempotent commands with no payload."""

    success: bool = True
