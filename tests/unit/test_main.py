"""Tests for the FastAPI application factory module."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from voter_card_api.core.config import Settings
from voter_card_api.lib.collaborators import UpstreamError
from voter_card_api.main import create_app, lifespan


def _settings(**overrides) -> Settings:
    fields = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "jwt_secret_key": "test-secret-key-not-for-production",
    }
    fields.update(overrides)
    return Settings(**fields)


class TestCreateApp:
    """Tests for create_app."""

    @pytest.fixture
    def app(self):
        with patch("voter_card_api.main.get_settings", return_value=_settings()):
            app = create_app()

        @app.get("/boom/value")
        async def raise_value_error() -> None:
            raise ValueError("bad input")

        @app.get("/boom/upstream")
        async def raise_upstream_error() -> None:
            raise UpstreamError("down", collaborator="simplifier")

        return app

    def test_app_title(self, app) -> None:
        assert app.title == "Voter Card API"

    def test_openapi_lists_routes(self, app) -> None:
        client = TestClient(app, raise_server_exceptions=False)
        paths = client.get("/openapi.json").json()["paths"]
        assert "/api/v1/events/state/{state}" in paths
        assert "/api/v1/voter-cards" in paths
        assert "/api/v1/decisions/{ballot_id}" in paths
        assert "/api/v1/admin/events/{event_id}/archive" in paths

    def test_value_error_handler_returns_400(self, app) -> None:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/boom/value")
        assert response.status_code == 400
        assert response.json() == {"detail": "bad input"}

    def test_upstream_error_handler_returns_502(self, app) -> None:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/boom/upstream")
        assert response.status_code == 502

    def test_health(self, app) -> None:
        client = TestClient(app, raise_server_exceptions=False)
        assert client.get("/health").json()["status"] == "ok"


class TestAppLifespan:
    """Tests for lifespan management."""

    async def test_lifespan_init_and_dispose(self) -> None:
        mock_app = AsyncMock()

        with (
            patch("voter_card_api.main.get_settings", return_value=_settings(event_sweep_enabled=False)),
            patch("voter_card_api.main.setup_logging") as mock_setup_logging,
            patch("voter_card_api.main.init_engine_from_settings") as mock_init_engine,
            patch("voter_card_api.main.dispose_engine", new_callable=AsyncMock) as mock_dispose,
        ):
            async with lifespan(mock_app):
                mock_setup_logging.assert_called_once()
                mock_init_engine.assert_called_once()

            mock_dispose.assert_awaited_once()

    async def test_lifespan_starts_and_cancels_sweep(self) -> None:
        mock_app = AsyncMock()
        started = False

        async def fake_loop(interval: int) -> None:
            nonlocal started
            started = True
            assert interval == 600
            await asyncio.sleep(3600)

        with (
            patch("voter_card_api.main.get_settings", return_value=_settings(event_sweep_interval=600)),
            patch("voter_card_api.main.setup_logging"),
            patch("voter_card_api.main.init_engine_from_settings"),
            patch("voter_card_api.main.dispose_engine", new_callable=AsyncMock),
            patch("voter_card_api.services.election_event_service.event_sweep_loop", fake_loop),
        ):
            async with lifespan(mock_app):
                await asyncio.sleep(0)
                assert started is True
