"""Decision ledger service — latest decision snapshot per identity and ballot.

Writes are full replacements (the client always sends its complete local
state) applied with a single INSERT ... ON CONFLICT DO UPDATE, so the last
write wins and concurrent retries never produce a second row.
"""

import uuid

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.database import dialect_insert
from voter_card_api.core.identity import Identity
from voter_card_api.models.base import utcnow
from voter_card_api.models.voter_decision import VoterDecision
from voter_card_api.schemas.decision import DecisionSetResponse, DecisionUpsertRequest
from voter_card_api.services import analytics_service


def build_decision_response(row: VoterDecision) -> DecisionSetResponse:
    """Build a DecisionSetResponse from a VoterDecision row."""
    return DecisionSetResponse(
        ballot_id=row.ballot_id,
        event_id=row.event_id,
        measure_decisions=row.measure_decisions,
        candidate_selections=row.candidate_selections,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


async def upsert_decisions(
    session: AsyncSession,
    identity: Identity,
    ballot_id: str,
    request: DecisionUpsertRequest,
) -> VoterDecision:
    """Store the full decision snapshot for (identity, ballot).

    The first write for a pair also records a ``decisions_started`` analytics
    signal; later writes only replace the stored snapshot.

    Args:
        session: Async database session.
        identity: Owning visitor or user.
        ballot_id: External ballot id.
        request: Complete measure decisions, candidate selections, and notes.

    Returns:
        The stored VoterDecision row.
    """
    now = utcnow()
    measure_decisions = {
        measure_id: decision.model_dump(exclude_none=True)
        for measure_id, decision in request.measure_decisions.items()
    }

    stmt = dialect_insert(session, VoterDecision).values(
        id=uuid.uuid4(),
        owner_kind=identity.owner_kind.value,
        owner_id=identity.owner_id,
        ballot_id=ballot_id,
        event_id=request.event_id,
        measure_decisions=measure_decisions,
        candidate_selections=dict(request.candidate_selections),
        notes=dict(request.notes),
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["owner_kind", "owner_id", "ballot_id"],
        set_={
            "event_id": stmt.excluded.event_id,
            "measure_decisions": stmt.excluded.measure_decisions,
            "candidate_selections": stmt.excluded.candidate_selections,
            "notes": stmt.excluded.notes,
            "updated_at": stmt.excluded.updated_at,
        },
    ).returning(VoterDecision)

    result = await session.execute(stmt, execution_options={"populate_existing": True})
    row = result.scalar_one()

    # created_at only equals this write's timestamp when the row was inserted.
    if row.created_at == row.updated_at:
        analytics_service.track_event(
            session,
            analytics_service.DECISIONS_STARTED,
            {"ballot_id": ballot_id},
            identity=identity,
        )
        logger.info("Decisions started for {} on ballot {}", identity.owner_kind, ballot_id)

    await session.commit()
    return row


async def get_decisions(
    session: AsyncSession,
    identity: Identity,
    ballot_id: str,
) -> VoterDecision | None:
    """Get the stored decision snapshot for (identity, ballot).

    Returns:
        VoterDecision or None if the identity has not recorded decisions for the ballot.
    """
    result = await session.execute(
        select(VoterDecision).where(
            VoterDecision.owner_kind == identity.owner_kind.value,
            VoterDecision.owner_id == identity.owner_id,
            VoterDecision.ballot_id == ballot_id,
        )
    )
    return result.scalar_one_or_none()


async def clear_decisions(
    session: AsyncSession,
    identity: Identity,
    ballot_id: str | None = None,
) -> int:
    """Delete an identity's decisions for one ballot, or for all ballots.

    Returns:
        Number of decision sets removed.
    """
    stmt = delete(VoterDecision).where(
        VoterDecision.owner_kind == identity.owner_kind.value,
        VoterDecision.owner_id == identity.owner_id,
    )
    if ballot_id is not None:
        stmt = stmt.where(VoterDecision.ballot_id == ballot_id)
    result = await session.execute(stmt)
    await session.commit()
    deleted = result.rowcount or 0
    logger.info("Cleared {} decision set(s) for {}", deleted, identity.owner_kind)
    return deleted
