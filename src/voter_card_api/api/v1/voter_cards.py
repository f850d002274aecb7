"""Voter card API endpoints.

POST /voter-cards — finalize (create or overwrite) the caller's card for an event
GET /voter-cards/mine — the caller's cards
GET /voter-cards/{id} — public view of a card
GET /voter-cards/{id}/edit — full card for its owner
PATCH /voter-cards/{id} — owner edits
GET /users/{user_id}/cards — a user's public cards
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.config import Settings, get_settings
from voter_card_api.core.dependencies import get_async_session, get_identity, get_optional_identity
from voter_card_api.core.identity import Identity
from voter_card_api.schemas.voter_card import (
    FinalizeCardRequest,
    PublicVoterCardResponse,
    VoterCardResponse,
    VoterCardUpdateRequest,
)
from voter_card_api.services import voter_card_service
from voter_card_api.services.voter_card_service import CardPermissionError, DuplicateCardError, UnknownEventError

voter_cards_router = APIRouter(prefix="/voter-cards", tags=["voter-cards"])
users_router = APIRouter(prefix="/users", tags=["voter-cards"])

# Private and missing cards get the same answer so card ids cannot be enumerated.
_CANNOT_VIEW = "Voter card not found or you do not have permission to view it."


@voter_cards_router.post("", response_model=VoterCardResponse)
async def finalize_card(
    request: FinalizeCardRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> VoterCardResponse:
    """Store the caller's card for an event. Finalizing again overwrites it in place."""
    try:
        card = await voter_card_service.finalize_card(
            session, identity, request, share_base_url=settings.share_base_url
        )
    except UnknownEventError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except DuplicateCardError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return voter_card_service.build_owner_view(card)


@voter_cards_router.get("/mine", response_model=list[VoterCardResponse])
async def list_my_cards(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> list[VoterCardResponse]:
    """List the caller's cards, newest first."""
    cards = await voter_card_service.list_cards_for_identity(session, identity)
    return [voter_card_service.build_owner_view(card) for card in cards]


@voter_cards_router.get(
    "/{card_id}",
    response_model=PublicVoterCardResponse,
    response_model_exclude_none=True,
)
async def get_card(
    card_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> PublicVoterCardResponse:
    """Public view of a card. Private cards are only visible to their owner."""
    try:
        card = await voter_card_service.get_public_card(session, card_id, identity)
    except CardPermissionError as e:
        raise HTTPException(status_code=404, detail=_CANNOT_VIEW) from e
    if card is None:
        raise HTTPException(status_code=404, detail=_CANNOT_VIEW)
    return voter_card_service.build_public_view(card)


@voter_cards_router.get("/{card_id}/edit", response_model=VoterCardResponse)
async def get_card_for_edit(
    card_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> VoterCardResponse:
    """Full stored card for its owner."""
    try:
        card = await voter_card_service.get_card_for_owner(session, card_id, identity)
    except CardPermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    if card is None:
        raise HTTPException(status_code=404, detail="Voter card not found.")
    return voter_card_service.build_owner_view(card)


@voter_cards_router.patch("/{card_id}", response_model=VoterCardResponse)
async def update_card(
    card_id: uuid.UUID,
    request: VoterCardUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> VoterCardResponse:
    """Edit template, visibility, hidden items, or notes on the caller's card."""
    try:
        card = await voter_card_service.update_card_fields(session, card_id, identity, request)
    except CardPermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    if card is None:
        raise HTTPException(status_code=404, detail="Voter card not found.")
    return voter_card_service.build_owner_view(card)


@users_router.get(
    "/{user_id}/cards",
    response_model=list[PublicVoterCardResponse],
    response_model_exclude_none=True,
)
async def list_public_cards_for_user(
    user_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> list[PublicVoterCardResponse]:
    """List a signed-in user's public cards. Public endpoint."""
    cards = await voter_card_service.list_public_cards_for_user(session, user_id)
    return [voter_card_service.build_public_view(card) for card in cards]
