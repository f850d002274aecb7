"""Fixtures for HTTP-level tests against the full v1 router."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.api.router import create_router
from voter_card_api.core.config import Settings, get_settings
from voter_card_api.core.dependencies import get_async_session


@pytest.fixture
def app(settings: Settings, async_session: AsyncSession) -> FastAPI:
    """FastAPI app with every v1 router bound to the test session and settings."""
    app = FastAPI()
    app.include_router(create_router(settings))

    async def _session_override() -> AsyncGenerator[AsyncSession]:
        yield async_session

    app.dependency_overrides[get_async_session] = _session_override
    app.dependency_overrides[get_settings] = lambda: settings
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def admin_headers(admin_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def user_headers(voter_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {voter_token}"}
