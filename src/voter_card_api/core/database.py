"""Engine and session lifecycle for the voter card store.

One async engine is created per process (API worker, CLI invocation) and torn
down on exit. Services receive an ``AsyncSession`` and never touch the engine.
PostgreSQL is the production store; SQLite (aiosqlite) backs the test suite,
which is why upserts go through :func:`dialect_insert`.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from loguru import logger
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

if TYPE_CHECKING:
    from voter_card_api.core.config import Settings

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the process-wide engine.

    Raises:
        RuntimeError: If :func:`init_engine` has not run.
    """
    if _engine is None:
        msg = "Database engine not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to the process-wide engine.

    Raises:
        RuntimeError: If :func:`init_engine` has not run.
    """
    if _session_factory is None:
        msg = "Session factory not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _session_factory


def _engine_options(database_url: str, schema: str | None, echo: bool) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": echo}
    if make_url(database_url).get_backend_name() == "sqlite":
        return options
    options["pool_size"] = 10
    options["max_overflow"] = 5
    options["pool_pre_ping"] = True
    if schema is not None:
        # asyncpg applies server_settings on every new connection.
        options["connect_args"] = {"server_settings": {"search_path": f"{schema},public"}}
    return options


def init_engine(
    database_url: str,
    *,
    schema: str | None = None,
    echo: bool = False,
    **overrides: Any,
) -> AsyncEngine:
    """Create the process-wide engine and session factory.

    Args:
        database_url: ``postgresql+asyncpg://`` or ``sqlite+aiosqlite://`` URL.
        schema: PostgreSQL schema to put first on the search path (per-PR
            preview databases). Ignored for SQLite.
        echo: Log every SQL statement.
        **overrides: Passed to ``create_async_engine`` after the defaults,
            e.g. ``poolclass`` for tests.

    Returns:
        The new engine.
    """
    global _engine, _session_factory  # noqa: PLW0603
    options = _engine_options(database_url, schema, echo)
    options.update(overrides)
    _engine = create_async_engine(database_url, **options)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    logger.debug("Database engine ready ({})", _engine.url.render_as_string(hide_password=True))
    return _engine


def init_engine_from_settings(settings: "Settings") -> AsyncEngine:
    """Create the engine from application settings."""
    return init_engine(settings.database_url, schema=settings.database_schema)


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine. Safe to call twice."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Open a session from the process-wide factory.

    Backs the per-request dependency as well as out-of-request work such as
    the sweep loop.
    """
    async with get_session_factory()() as session:
        yield session


def dialect_insert(session: AsyncSession, model: type[Any]) -> Any:
    """Build an INSERT with ``on_conflict_*`` support for the session's dialect.

    Both supported dialects accept ``index_elements`` conflict targets and
    ``.returning()``, so callers write one upsert statement for either store.

    Raises:
        RuntimeError: If the bound dialect has no upsert support.
    """
    dialect = session.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        msg = f"Atomic upsert is not supported for dialect '{dialect}'"
        raise RuntimeError(msg)
    return insert(model)
