"""Shared test fixtures for async database, sessions, HTTP client, and auth tokens."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from voter_card_api.core.config import Settings
from voter_card_api.core.security import create_access_token
from voter_card_api.lib.event_lifecycle import generate_event_id, today_utc
from voter_card_api.models.base import Base
from voter_card_api.models.election_event import ElectionEvent

EventFactory = Callable[..., Awaitable[ElectionEvent]]


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
        jwt_algorithm="HS256",
        jwt_access_token_expire_minutes=30,
        supported_states="NY,NJ,PA,CT,TX",
        share_base_url="https://cards.example.org",
        event_sweep_enabled=False,
    )


@pytest.fixture
async def async_engine(settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_event(async_session: AsyncSession) -> EventFactory:
    """Factory that persists an ElectionEvent with sensible defaults."""

    async def _make(**overrides) -> ElectionEvent:
        state = overrides.pop("state", "NY")
        event_type = overrides.pop("event_type", "general")
        fields = {
            "id": generate_event_id(state, event_type),
            "state": state,
            "event_type": event_type,
            "title": f"{state} {event_type.title()} Election",
            "election_date": today_utc() + timedelta(days=30),
            "visibility": "public",
            "archived": False,
        }
        fields.update(overrides)
        event = ElectionEvent(**fields)
        async_session.add(event)
        await async_session.commit()
        await async_session.refresh(event)
        return event

    return _make


@pytest.fixture
def reference_date() -> date:
    """Fixed 'today' used by status-sensitive tests."""
    return date(2026, 11, 3)


@pytest.fixture
def admin_token(settings: Settings) -> str:
    """Generate a JWT access token for an admin user."""
    return create_access_token(
        subject="admin-user-1",
        role="admin",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def voter_token(settings: Settings) -> str:
    """Generate a JWT access token for a signed-in voter."""
    return create_access_token(
        subject="user-42",
        role="voter",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
