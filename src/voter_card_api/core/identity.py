"""Voter identity: an anonymous visitor or an authenticated user.

Every per-voter record (decisions, cards, subscriptions) is keyed by the
``(owner_kind, owner_id)`` pair derived from an identity. Visitor and user
ids live in separate key spaces; a visitor id is never treated as a user id
and no history is merged when a visitor later signs in.
"""

import re
from dataclasses import dataclass
from enum import StrEnum

VISITOR_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,255}$")


class OwnerKind(StrEnum):
    """Discriminator persisted alongside ``owner_id``."""

    VISITOR = "visitor"
    USER = "user"


@dataclass(frozen=True, slots=True)
class Visitor:
    """Anonymous identity backed by a client-generated, client-persisted id."""

    visitor_id: str

    @property
    def owner_kind(self) -> OwnerKind:
        return OwnerKind.VISITOR

    @property
    def owner_id(self) -> str:
        return self.visitor_id


@dataclass(frozen=True, slots=True)
class User:
    """Authenticated identity backed by the auth provider's stable user id."""

    user_id: str

    @property
    def owner_kind(self) -> OwnerKind:
        return OwnerKind.USER

    @property
    def owner_id(self) -> str:
        return self.user_id


Identity = Visitor | User


def validate_visitor_id(visitor_id: str) -> str:
    """Return the visitor id unchanged if well-formed.

    Raises:
        ValueError: If the id is empty, too long, or has unexpected characters.
    """
    if not VISITOR_ID_PATTERN.match(visitor_id):
        msg = "Invalid visitor id: expected 1-255 characters of letters, digits, '-' or '_'"
        raise ValueError(msg)
    return visitor_id


def identity_from_owner(owner_kind: str, owner_id: str) -> Identity:
    """Rebuild an identity from its persisted discriminator and id."""
    match OwnerKind(owner_kind):
        case OwnerKind.VISITOR:
            return Visitor(owner_id)
        case OwnerKind.USER:
            return User(owner_id)


def owns(identity: Identity | None, owner_kind: str, owner_id: str) -> bool:
    """Return True when ``identity`` is the owner recorded as (owner_kind, owner_id)."""
    if identity is None:
        return False
    return identity == identity_from_owner(owner_kind, owner_id)
