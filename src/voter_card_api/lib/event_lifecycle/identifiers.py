"""Election event identifier generation."""

import uuid


def generate_event_id(state: str, event_type: str) -> str:
    """Build a readable, globally unique event id such as ``ny-general-3f9c0a1b2d4e``."""
    return f"{state.lower()}-{event_type.lower()}-{uuid.uuid4().hex[:12]}"
