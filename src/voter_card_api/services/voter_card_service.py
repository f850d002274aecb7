"""Voter card service — finalize, edit, and view finalized voter cards.

Finalize is an atomic upsert keyed by (owner_kind, owner_id, event_id): the
first call for an identity and event creates the card, later calls overwrite
its content in place while ``id``, ``created_at`` and ``is_public`` are kept.
Visitor and user identities are separate key spaces, so an anonymous card and
a signed-in card for the same event are two different cards.
"""

import uuid
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.database import dialect_insert
from voter_card_api.core.identity import Identity, User, Visitor, owns
from voter_card_api.models.base import utcnow
from voter_card_api.models.voter_card import FinalizedVoterCard
from voter_card_api.schemas.voter_card import (
    FinalizeCardRequest,
    PublicVoterCardResponse,
    VoterCardDecision,
    VoterCardResponse,
    VoterCardUpdateRequest,
)
from voter_card_api.services import analytics_service
from voter_card_api.services.election_event_service import get_event

_NON_NULLABLE_FIELDS = frozenset(
    {"template", "location", "election_date", "election_type", "decisions", "show_notes", "is_public"}
)


class UnknownEventError(ValueError):
    """Raised when finalizing a card for an event that does not exist."""


class CardPermissionError(PermissionError):
    """Raised when an identity edits or views a card it does not own."""


class DuplicateCardError(ValueError):
    """Raised when a write would create a second card for the same identity and event."""


def build_share_url(share_base_url: str, card_id: uuid.UUID) -> str:
    """Public link for a card."""
    return f"{share_base_url.rstrip('/')}/card/{card_id}"


def _is_unique_violation(exc: IntegrityError) -> bool:
    """True when the store rejected a write for a duplicate key (SQLSTATE 23505 or SQLite UNIQUE)."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == "23505"
    return "UNIQUE constraint failed" in str(orig)


def _owner_filter(identity: Identity) -> tuple[Any, ...]:
    match identity:
        case Visitor(visitor_id=visitor_id):
            return (FinalizedVoterCard.owner_kind == "visitor", FinalizedVoterCard.owner_id == visitor_id)
        case User(user_id=user_id):
            return (FinalizedVoterCard.owner_kind == "user", FinalizedVoterCard.owner_id == user_id)
    msg = f"Unsupported identity type: {type(identity).__name__}"
    raise TypeError(msg)


def _dump_decisions(decisions: list[VoterCardDecision]) -> list[dict[str, Any]]:
    return [d.model_dump(exclude_none=True) for d in decisions]


async def get_card(session: AsyncSession, card_id: uuid.UUID) -> FinalizedVoterCard | None:
    """Get a card by id regardless of owner or visibility."""
    result = await session.execute(select(FinalizedVoterCard).where(FinalizedVoterCard.id == card_id))
    return result.scalar_one_or_none()


async def get_card_for_identity(
    session: AsyncSession,
    identity: Identity,
    event_id: str,
) -> FinalizedVoterCard | None:
    """Look up the card an identity holds for an event."""
    result = await session.execute(
        select(FinalizedVoterCard).where(*_owner_filter(identity), FinalizedVoterCard.event_id == event_id)
    )
    return result.scalar_one_or_none()


async def finalize_card(
    session: AsyncSession,
    identity: Identity,
    request: FinalizeCardRequest,
    *,
    share_base_url: str,
) -> FinalizedVoterCard:
    """Create or overwrite the identity's card for an event.

    Args:
        session: Async database session.
        identity: Owning visitor or user.
        request: Snapshot of the card content.
        share_base_url: Base URL used to build ``share_url``.

    Returns:
        The stored card. Calling this repeatedly for the same identity and
        event always yields the same ``id`` and ``created_at``.

    Raises:
        UnknownEventError: If ``request.event_id`` does not exist, or is
            removed before the card row is written.
        DuplicateCardError: If the store reports a uniqueness violation.
    """
    event = await get_event(session, request.event_id)
    if event is None:
        msg = f"Election event '{request.event_id}' not found."
        raise UnknownEventError(msg)

    now = utcnow()
    new_id = uuid.uuid4()
    stmt = dialect_insert(session, FinalizedVoterCard).values(
        id=new_id,
        owner_kind=identity.owner_kind.value,
        owner_id=identity.owner_id,
        event_id=request.event_id,
        ballot_id=request.ballot_id,
        template=request.template,
        location=request.location,
        state=request.state.upper() if request.state else None,
        election_date=request.election_date,
        election_type=request.election_type,
        decisions=_dump_decisions(request.decisions),
        show_notes=request.show_notes,
        is_public=True,
        share_url=build_share_url(share_base_url, new_id),
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["owner_kind", "owner_id", "event_id"],
        set_={
            "ballot_id": stmt.excluded.ballot_id,
            "template": stmt.excluded.template,
            "location": stmt.excluded.location,
            "state": stmt.excluded.state,
            "election_date": stmt.excluded.election_date,
            "election_type": stmt.excluded.election_type,
            "decisions": stmt.excluded.decisions,
            "show_notes": stmt.excluded.show_notes,
            "updated_at": stmt.excluded.updated_at,
        },
    ).returning(FinalizedVoterCard)

    try:
        result = await session.execute(stmt, execution_options={"populate_existing": True})
        card = result.scalar_one()
    except IntegrityError as exc:
        await session.rollback()
        logger.warning("Finalize conflict for {} on event {}: {}", identity.owner_kind, request.event_id, exc)
        if _is_unique_violation(exc):
            msg = "A voter card for this event already exists for this voter."
            raise DuplicateCardError(msg) from exc
        msg = f"Election event '{request.event_id}' not found."
        raise UnknownEventError(msg) from exc

    share_url = build_share_url(share_base_url, card.id)
    if card.share_url != share_url:
        card.share_url = share_url
        card.updated_at = now

    created = card.created_at == card.updated_at
    if created:
        analytics_service.track_event(
            session,
            analytics_service.VOTER_CARD_FINALIZED,
            {"event_id": request.event_id, "template": request.template},
            identity=identity,
            state=card.state,
        )

    await session.commit()
    logger.info(
        "{} voter card {} for event {} ({} decisions)",
        "Created" if created else "Updated",
        card.id,
        request.event_id,
        len(request.decisions),
    )
    return card


async def update_card_fields(
    session: AsyncSession,
    card_id: uuid.UUID,
    identity: Identity | None,
    request: VoterCardUpdateRequest,
) -> FinalizedVoterCard | None:
    """Apply owner edits (template, visibility, hidden flags, notes) to a card.

    Args:
        session: Async database session.
        card_id: The card id.
        identity: Requesting identity.
        request: Fields to change; unset fields are left alone.

    Returns:
        Updated card or None if not found.

    Raises:
        CardPermissionError: If ``identity`` does not own the card. The card
            is not modified.
    """
    card = await get_card(session, card_id)
    if card is None:
        return None
    if not owns(identity, card.owner_kind, card.owner_id):
        raise CardPermissionError("You can only edit your own voter cards.")

    patch = request.model_dump(exclude_unset=True)
    for field, value in patch.items():
        if value is None and field in _NON_NULLABLE_FIELDS:
            continue
        if field == "decisions":
            value = _dump_decisions(request.decisions or [])
        elif field == "state" and value is not None:
            value = value.upper()
        setattr(card, field, value)
    card.updated_at = utcnow()

    await session.commit()
    await session.refresh(card)
    logger.info("Updated voter card {} fields {}", card.id, sorted(patch))
    return card


async def get_public_card(
    session: AsyncSession,
    card_id: uuid.UUID,
    identity: Identity | None = None,
) -> FinalizedVoterCard | None:
    """Fetch a card for display, enforcing visibility.

    Returns:
        The card, or None if it does not exist.

    Raises:
        CardPermissionError: If the card is private and ``identity`` is not its owner.
    """
    card = await get_card(session, card_id)
    if card is None:
        return None
    if not card.is_public and not owns(identity, card.owner_kind, card.owner_id):
        raise CardPermissionError("This voter card is private.")
    return card


async def get_card_for_owner(
    session: AsyncSession,
    card_id: uuid.UUID,
    identity: Identity,
) -> FinalizedVoterCard | None:
    """Fetch the full stored card for its owner (edit screens).

    Raises:
        CardPermissionError: If ``identity`` does not own the card.
    """
    card = await get_card(session, card_id)
    if card is None:
        return None
    if not owns(identity, card.owner_kind, card.owner_id):
        raise CardPermissionError("You can only edit your own voter cards.")
    return card


async def list_cards_for_identity(session: AsyncSession, identity: Identity) -> list[FinalizedVoterCard]:
    """List every card an identity owns, newest first."""
    result = await session.execute(
        select(FinalizedVoterCard).where(*_owner_filter(identity)).order_by(FinalizedVoterCard.created_at.desc())
    )
    return list(result.scalars().all())


async def list_public_cards_for_user(session: AsyncSession, user_id: str) -> list[FinalizedVoterCard]:
    """List a signed-in user's public cards (public profile page)."""
    cards = await list_cards_for_identity(session, User(user_id))
    return [card for card in cards if card.is_public]


def build_public_view(card: FinalizedVoterCard) -> PublicVoterCardResponse:
    """Derive the display shape of a card without touching the stored record.

    Hidden decisions are dropped, notes are removed when ``show_notes`` is off,
    and owner identifiers are never included.
    """
    decisions: list[VoterCardDecision] = []
    for item in card.decisions:
        decision = VoterCardDecision.model_validate(item)
        if decision.hidden:
            continue
        if not card.show_notes:
            decision = decision.model_copy(update={"note": None})
        decisions.append(decision)

    return PublicVoterCardResponse(
        id=card.id,
        event_id=card.event_id,
        template=card.template,
        location=card.location,
        state=card.state,
        election_date=card.election_date,
        election_type=card.election_type,
        decisions=decisions,
        show_notes=card.show_notes,
        share_url=card.share_url,
        created_at=card.created_at,
        updated_at=card.updated_at,
    )


def build_owner_view(card: FinalizedVoterCard) -> VoterCardResponse:
    """Full stored card for its owner."""
    return VoterCardResponse.model_validate(card)
