"""Root API router with /api/v1 prefix and middleware registration."""

from fastapi import APIRouter, FastAPI

from voter_card_api.api.middleware import RateLimitMiddleware, SecurityHeadersMiddleware, setup_cors
from voter_card_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from voter_card_api.api.v1.admin_events import admin_events_router
    from voter_card_api.api.v1.analytics import analytics_router
    from voter_card_api.api.v1.assist import assist_router
    from voter_card_api.api.v1.decisions import decisions_router
    from voter_card_api.api.v1.events import events_router, states_router
    from voter_card_api.api.v1.voter_cards import users_router, voter_cards_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(states_router)
    root_router.include_router(events_router)
    root_router.include_router(admin_events_router)
    root_router.include_router(decisions_router)
    root_router.include_router(voter_cards_router)
    root_router.include_router(users_router)
    root_router.include_router(analytics_router)
    root_router.include_router(assist_router)

    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.rate_limit_per_minute,
        trusted_proxy_headers=settings.trusted_proxy_header_list,
    )
