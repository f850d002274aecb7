"""ASGI application factory for the voter card API.

``create_app`` is what uvicorn loads (``voter_card_api.main:create_app``).
Collaborator clients are attached to ``app.state`` by the deployment; the
assist endpoints answer 503 until they are.
"""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from voter_card_api.core.config import get_settings
from voter_card_api.core.database import dispose_engine, init_engine_from_settings
from voter_card_api.core.logging import setup_logging
from voter_card_api.lib.collaborators import UpstreamError


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Open the database engine and start the event sweep; undo both on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir, json_logs=settings.log_json)
    init_engine_from_settings(settings)
    logger.info("Voter card API starting ({})", settings.environment)

    sweep_task: asyncio.Task[None] | None = None
    if settings.event_sweep_enabled:
        from voter_card_api.services.election_event_service import event_sweep_loop

        sweep_task = asyncio.create_task(event_sweep_loop(settings.event_sweep_interval), name="event-sweep")

    try:
        yield
    finally:
        if sweep_task is not None:
            sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweep_task
        await dispose_engine()
        logger.info("Voter card API stopped")


async def _invalid_input(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _upstream_failure(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.warning("Unhandled upstream failure from {} on {}: {}", exc.collaborator, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": "An upstream service failed. Please retry later."})


def create_app() -> FastAPI:
    """Build the API: routers under the versioned prefix, middleware, error mapping, and ``/health``."""
    settings = get_settings()

    app = FastAPI(
        title="Voter Card API",
        description="Election events, voter decisions, and shareable voter cards",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(ValueError, _invalid_input)
    app.add_exception_handler(UpstreamError, _upstream_failure)

    from voter_card_api.api.router import create_router, setup_middleware

    setup_middleware(app, settings)
    app.include_router(create_router(settings))

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "environment": settings.environment}

    return app
