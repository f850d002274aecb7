"""Tests for the voter card finalize/edit/view service."""

import uuid
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.identity import User, Visitor
from voter_card_api.models.analytics_event import AnalyticsEvent
from voter_card_api.models.voter_card import FinalizedVoterCard
from voter_card_api.schemas.voter_card import FinalizeCardRequest, VoterCardUpdateRequest
from voter_card_api.services import analytics_service, voter_card_service
from voter_card_api.services.voter_card_service import CardPermissionError, DuplicateCardError, UnknownEventError

BASE_URL = "https://cards.example.org"
T0 = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


def _finalize_request(event_id: str, **overrides) -> FinalizeCardRequest:
    fields = {
        "event_id": event_id,
        "ballot_id": "ballot-1",
        "template": "minimal",
        "location": "Kings County, NY",
        "state": "ny",
        "election_date": "November 3, 2026",
        "election_type": "General Election",
        "decisions": [
            {"type": "measure", "title": "Prop 1", "decision": "yes", "note": "Parks"},
            {"type": "candidate", "title": "Mayor", "decision": "Jane Doe", "hidden": True},
        ],
        "show_notes": True,
    }
    fields.update(overrides)
    return FinalizeCardRequest(**fields)


async def _card_count(session: AsyncSession) -> int:
    return await session.scalar(select(func.count()).select_from(FinalizedVoterCard))


def _failing_session(orig: Exception) -> MagicMock:
    """Mock session whose upsert fails with an IntegrityError wrapping ``orig``."""
    session = MagicMock()
    session.get_bind.return_value.dialect.name = "sqlite"
    session.execute = AsyncMock(side_effect=IntegrityError("INSERT INTO finalized_voter_cards", {}, orig))
    session.rollback = AsyncMock()
    session.commit = AsyncMock()
    return session


class TestFinalizeCard:
    """Tests for finalize_card."""

    async def test_creates_card(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        card = await voter_card_service.finalize_card(
            async_session, Visitor("v1"), _finalize_request(event.id), share_base_url=BASE_URL
        )
        assert isinstance(card.id, uuid.UUID)
        assert card.owner_kind == "visitor"
        assert card.owner_id == "v1"
        assert card.is_public is True
        assert card.state == "NY"
        assert card.share_url == f"{BASE_URL}/card/{card.id}"
        assert len(card.decisions) == 2

    async def test_refinalize_overwrites_in_place(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        identity = Visitor("v1")
        first = await voter_card_service.finalize_card(
            async_session, identity, _finalize_request(event.id), share_base_url=BASE_URL
        )
        first_id, first_created, first_share = first.id, first.created_at, first.share_url

        second = await voter_card_service.finalize_card(
            async_session,
            identity,
            _finalize_request(event.id, template="bold", decisions=[], location="Albany, NY"),
            share_base_url=BASE_URL,
        )
        assert second.id == first_id
        assert second.created_at == first_created
        assert second.share_url == first_share
        assert second.template == "bold"
        assert second.location == "Albany, NY"
        assert second.decisions == []
        assert await _card_count(async_session) == 1

    async def test_refinalize_keeps_visibility(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        identity = User("u1")
        card = await voter_card_service.finalize_card(
            async_session, identity, _finalize_request(event.id), share_base_url=BASE_URL
        )
        await voter_card_service.update_card_fields(
            async_session, card.id, identity, VoterCardUpdateRequest(is_public=False)
        )

        again = await voter_card_service.finalize_card(
            async_session, identity, _finalize_request(event.id), share_base_url=BASE_URL
        )
        assert again.is_public is False

    async def test_visitor_and_user_cards_are_distinct(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        visitor_card = await voter_card_service.finalize_card(
            async_session, Visitor("abc"), _finalize_request(event.id), share_base_url=BASE_URL
        )
        visitor_card_id = visitor_card.id
        user_card = await voter_card_service.finalize_card(
            async_session, User("abc"), _finalize_request(event.id), share_base_url=BASE_URL
        )
        assert user_card.id != visitor_card_id
        assert await _card_count(async_session) == 2

    async def test_one_card_per_event(self, async_session: AsyncSession, make_event) -> None:
        first_event = await make_event()
        second_event = await make_event(state="TX", event_type="primary")
        identity = Visitor("v1")
        await voter_card_service.finalize_card(
            async_session, identity, _finalize_request(first_event.id), share_base_url=BASE_URL
        )
        await voter_card_service.finalize_card(
            async_session, identity, _finalize_request(second_event.id), share_base_url=BASE_URL
        )
        cards = await voter_card_service.list_cards_for_identity(async_session, identity)
        assert {c.event_id for c in cards} == {first_event.id, second_event.id}

    async def test_unknown_event_rejected(self, async_session: AsyncSession) -> None:
        with pytest.raises(UnknownEventError):
            await voter_card_service.finalize_card(
                async_session, Visitor("v1"), _finalize_request("missing-event"), share_base_url=BASE_URL
            )
        assert await _card_count(async_session) == 0

    async def test_empty_decisions_allowed(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        card = await voter_card_service.finalize_card(
            async_session, Visitor("v1"), _finalize_request(event.id, decisions=[]), share_base_url=BASE_URL
        )
        assert card.decisions == []

    async def test_finalized_signal_only_on_create(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        for _ in range(3):
            await voter_card_service.finalize_card(
                async_session, Visitor("v1"), _finalize_request(event.id), share_base_url=BASE_URL
            )
        count = await async_session.scalar(
            select(func.count())
            .select_from(AnalyticsEvent)
            .where(AnalyticsEvent.event_type == analytics_service.VOTER_CARD_FINALIZED)
        )
        assert count == 1

    async def test_refinalize_advances_updated_at(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        identity = Visitor("v1")
        with patch("voter_card_api.services.voter_card_service.utcnow", return_value=T0):
            first = await voter_card_service.finalize_card(
                async_session, identity, _finalize_request(event.id), share_base_url=BASE_URL
            )
        first_created, first_updated = first.created_at, first.updated_at

        with patch("voter_card_api.services.voter_card_service.utcnow", return_value=T0 + timedelta(minutes=5)):
            second = await voter_card_service.finalize_card(
                async_session, identity, _finalize_request(event.id, template="bold"), share_base_url=BASE_URL
            )
        assert second.created_at == first_created
        assert second.updated_at > first_updated

    async def test_unique_violation_is_duplicate(self) -> None:
        session = _failing_session(Exception("UNIQUE constraint failed: finalized_voter_cards.owner_id"))
        with (
            patch("voter_card_api.services.voter_card_service.get_event", new_callable=AsyncMock) as mock_get,
            pytest.raises(DuplicateCardError),
        ):
            mock_get.return_value = SimpleNamespace(id="ny-general-1")
            await voter_card_service.finalize_card(
                session, Visitor("v1"), _finalize_request("ny-general-1"), share_base_url=BASE_URL
            )
        session.rollback.assert_awaited_once()

    async def test_foreign_key_failure_is_unknown_event(self) -> None:
        """The event row can disappear between the lookup and the insert."""
        session = _failing_session(Exception("FOREIGN KEY constraint failed"))
        with (
            patch("voter_card_api.services.voter_card_service.get_event", new_callable=AsyncMock) as mock_get,
            pytest.raises(UnknownEventError),
        ):
            mock_get.return_value = SimpleNamespace(id="ny-general-1")
            await voter_card_service.finalize_card(
                session, Visitor("v1"), _finalize_request("ny-general-1"), share_base_url=BASE_URL
            )
        session.rollback.assert_awaited_once()

    async def test_postgres_sqlstate_decides_error(self) -> None:
        fk_error = Exception("insert or update violates foreign key constraint")
        fk_error.sqlstate = "23503"
        unique_error = Exception("duplicate key value violates unique constraint")
        unique_error.sqlstate = "23505"
        request = _finalize_request("ny-general-1")

        with patch("voter_card_api.services.voter_card_service.get_event", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = SimpleNamespace(id="ny-general-1")
            with pytest.raises(UnknownEventError):
                await voter_card_service.finalize_card(
                    _failing_session(fk_error), Visitor("v1"), request, share_base_url=BASE_URL
                )
            with pytest.raises(DuplicateCardError):
                await voter_card_service.finalize_card(
                    _failing_session(unique_error), User("u1"), request, share_base_url=BASE_URL
                )


class TestUpdateCardFields:
    """Tests for update_card_fields."""

    async def test_owner_can_edit(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        identity = Visitor("v1")
        card = await voter_card_service.finalize_card(
            async_session, identity, _finalize_request(event.id), share_base_url=BASE_URL
        )
        updated = await voter_card_service.update_card_fields(
            async_session,
            card.id,
            identity,
            VoterCardUpdateRequest(template="professional", show_notes=False),
        )
        assert updated.template == "professional"
        assert updated.show_notes is False
        assert updated.event_id == event.id
        assert updated.owner_id == "v1"

    async def test_non_owner_forbidden_and_card_untouched(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        card = await voter_card_service.finalize_card(
            async_session, Visitor("owner"), _finalize_request(event.id), share_base_url=BASE_URL
        )
        card_id = card.id

        with pytest.raises(CardPermissionError):
            await voter_card_service.update_card_fields(
                async_session, card_id, Visitor("intruder"), VoterCardUpdateRequest(template="bold")
            )
        with pytest.raises(CardPermissionError):
            await voter_card_service.update_card_fields(
                async_session, card_id, User("owner"), VoterCardUpdateRequest(template="bold")
            )

        stored = await voter_card_service.get_card(async_session, card_id)
        assert stored.template == "minimal"

    async def test_edit_advances_updated_at(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        identity = Visitor("v1")
        with patch("voter_card_api.services.voter_card_service.utcnow", return_value=T0):
            card = await voter_card_service.finalize_card(
                async_session, identity, _finalize_request(event.id), share_base_url=BASE_URL
            )
        finalized_at = card.updated_at

        with patch("voter_card_api.services.voter_card_service.utcnow", return_value=T0 + timedelta(minutes=1)):
            updated = await voter_card_service.update_card_fields(
                async_session, card.id, identity, VoterCardUpdateRequest(show_notes=False)
            )
        assert updated.updated_at > finalized_at
        assert updated.created_at == finalized_at

    async def test_unknown_card_returns_none(self, async_session: AsyncSession) -> None:
        result = await voter_card_service.update_card_fields(
            async_session, uuid.uuid4(), Visitor("v1"), VoterCardUpdateRequest(template="bold")
        )
        assert result is None

    async def test_hide_decision(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        identity = Visitor("v1")
        card = await voter_card_service.finalize_card(
            async_session, identity, _finalize_request(event.id), share_base_url=BASE_URL
        )
        updated = await voter_card_service.update_card_fields(
            async_session,
            card.id,
            identity,
            VoterCardUpdateRequest(
                decisions=[{"type": "measure", "title": "Prop 1", "decision": "yes", "hidden": True}],
            ),
        )
        assert updated.decisions == [{"type": "measure", "title": "Prop 1", "decision": "yes", "hidden": True}]

    async def test_explicit_null_on_required_field_ignored(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        identity = Visitor("v1")
        card = await voter_card_service.finalize_card(
            async_session, identity, _finalize_request(event.id), share_base_url=BASE_URL
        )
        updated = await voter_card_service.update_card_fields(
            async_session, card.id, identity, VoterCardUpdateRequest(template=None, location=None)
        )
        assert updated.template == "minimal"
        assert updated.location == "Kings County, NY"


class TestPublicView:
    """Tests for get_public_card and build_public_view."""

    async def test_private_card_hidden_from_others(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        owner = Visitor("owner")
        card = await voter_card_service.finalize_card(
            async_session, owner, _finalize_request(event.id), share_base_url=BASE_URL
        )
        await voter_card_service.update_card_fields(
            async_session, card.id, owner, VoterCardUpdateRequest(is_public=False)
        )

        with pytest.raises(CardPermissionError):
            await voter_card_service.get_public_card(async_session, card.id, Visitor("other"))
        with pytest.raises(CardPermissionError):
            await voter_card_service.get_public_card(async_session, card.id, None)
        assert (await voter_card_service.get_public_card(async_session, card.id, owner)).id == card.id

    async def test_missing_card_returns_none(self, async_session: AsyncSession) -> None:
        assert await voter_card_service.get_public_card(async_session, uuid.uuid4()) is None

    async def test_hidden_items_and_notes_removed(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        card = await voter_card_service.finalize_card(
            async_session, Visitor("v1"), _finalize_request(event.id, show_notes=False), share_base_url=BASE_URL
        )
        view = voter_card_service.build_public_view(card)

        assert [d.title for d in view.decisions] == ["Prop 1"]
        assert all(d.note is None for d in view.decisions)
        assert "owner_id" not in view.model_dump()
        assert "owner_kind" not in view.model_dump()

    async def test_public_view_does_not_mutate_storage(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        card = await voter_card_service.finalize_card(
            async_session, Visitor("v1"), _finalize_request(event.id, show_notes=False), share_base_url=BASE_URL
        )
        voter_card_service.build_public_view(card)

        stored = await voter_card_service.get_card(async_session, card.id)
        assert len(stored.decisions) == 2
        assert stored.decisions[0]["note"] == "Parks"

    async def test_notes_kept_when_show_notes(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        card = await voter_card_service.finalize_card(
            async_session, Visitor("v1"), _finalize_request(event.id), share_base_url=BASE_URL
        )
        view = voter_card_service.build_public_view(card)
        assert view.decisions[0].note == "Parks"

    async def test_show_notes_toggle_round_trip(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        identity = Visitor("v1")
        card = await voter_card_service.finalize_card(
            async_session, identity, _finalize_request(event.id), share_base_url=BASE_URL
        )
        card_id = card.id

        await voter_card_service.update_card_fields(
            async_session, card_id, identity, VoterCardUpdateRequest(show_notes=False)
        )
        shown = await voter_card_service.get_public_card(async_session, card_id)
        view = voter_card_service.build_public_view(shown)
        assert view.show_notes is False
        assert [d.note for d in view.decisions] == [None]

        await voter_card_service.update_card_fields(
            async_session, card_id, identity, VoterCardUpdateRequest(show_notes=True)
        )
        shown = await voter_card_service.get_public_card(async_session, card_id)
        view = voter_card_service.build_public_view(shown)
        assert view.show_notes is True
        assert [d.note for d in view.decisions] == ["Parks"]
        assert shown.decisions[0]["note"] == "Parks"


class TestOwnerQueries:
    """Tests for get_card_for_owner and listings."""

    async def test_get_card_for_owner(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        owner = User("u1")
        card = await voter_card_service.finalize_card(
            async_session, owner, _finalize_request(event.id), share_base_url=BASE_URL
        )
        assert (await voter_card_service.get_card_for_owner(async_session, card.id, owner)).id == card.id
        with pytest.raises(CardPermissionError):
            await voter_card_service.get_card_for_owner(async_session, card.id, User("u2"))

    async def test_get_card_for_identity(self, async_session: AsyncSession, make_event) -> None:
        event = await make_event()
        card = await voter_card_service.finalize_card(
            async_session, Visitor("v1"), _finalize_request(event.id), share_base_url=BASE_URL
        )
        card_id = card.id
        found = await voter_card_service.get_card_for_identity(async_session, Visitor("v1"), event.id)
        assert found.id == card_id
        assert await voter_card_service.get_card_for_identity(async_session, User("v1"), event.id) is None

    async def test_public_cards_for_user(self, async_session: AsyncSession, make_event) -> None:
        first_event = await make_event()
        second_event = await make_event(state="NJ")
        owner = User("u1")
        public_card = await voter_card_service.finalize_card(
            async_session, owner, _finalize_request(first_event.id), share_base_url=BASE_URL
        )
        public_card_id = public_card.id
        private_card = await voter_card_service.finalize_card(
            async_session, owner, _finalize_request(second_event.id), share_base_url=BASE_URL
        )
        await voter_card_service.update_card_fields(
            async_session, private_card.id, owner, VoterCardUpdateRequest(is_public=False)
        )
        await voter_card_service.finalize_card(
            async_session, Visitor("u1"), _finalize_request(first_event.id), share_base_url=BASE_URL
        )

        cards = await voter_card_service.list_public_cards_for_user(async_session, "u1")
        assert [c.id for c in cards] == [public_card_id]


class TestBuildShareUrl:
    """Tests for build_share_url."""

    def test_strips_trailing_slash(self) -> None:
        card_id = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert (
            voter_card_service.build_share_url("https://x.org/", card_id)
            == "https://x.org/card/12345678-1234-5678-1234-567812345678"
        )
