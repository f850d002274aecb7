"""HTTP middleware: CORS for the card front-end, response hardening, and a per-IP rate limit."""

import time
from collections import defaultdict, deque

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from voter_card_api.core.config import Settings

DEFAULT_TRUSTED_HEADERS = ("CF-Connecting-IP", "X-Forwarded-For", "X-Real-IP")
RATE_LIMIT_WINDOW_SECONDS = 60

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
}


def get_client_ip(request: Request, trusted_headers: list[str] | tuple[str, ...] | None = None) -> str:
    """Best-effort client address for rate limiting.

    The first non-empty trusted header wins. ``X-Forwarded-For`` holds a
    ``client, proxy1, proxy2`` chain, so only its leftmost entry is used.
    Falls back to the socket peer, then ``"unknown"``.
    """
    for header in DEFAULT_TRUSTED_HEADERS if trusted_headers is None else trusted_headers:
        value = request.headers.get(header, "").strip()
        if value:
            return value.split(",")[0].strip() if header.lower() == "x-forwarded-for" else value
    return request.client.host if request.client else "unknown"


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured front-end origins to call the API.

    Anonymous voters identify themselves with ``X-Visitor-Id``, so that header
    has to pass preflight alongside ``Authorization``.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_origin_regex=settings.cors_origin_regex.strip() or None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Visitor-Id"],
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp hardening headers on every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers.update(_SECURITY_HEADERS)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding one-minute window of requests per client IP.

    Counters live in process memory; each worker enforces the limit on its own.
    Health checks are never limited.
    """

    exempt_paths = frozenset({"/health"})

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int = 60,
        trusted_proxy_headers: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.trusted_proxy_headers = trusted_proxy_headers
        self._hits: defaultdict[str, deque[float]] = defaultdict(deque)

    def _allow(self, client_ip: str) -> bool:
        now = time.monotonic()
        hits = self._hits[client_ip]
        while hits and hits[0] <= now - RATE_LIMIT_WINDOW_SECONDS:
            hits.popleft()
        if len(hits) >= self.requests_per_minute:
            return False
        hits.append(now)
        return True

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        client_ip = get_client_ip(request, self.trusted_proxy_headers)
        if not self._allow(client_ip):
            logger.warning("Rate limit exceeded for {} on {} {}", client_ip, request.method, request.url.path)
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded"},
                headers={"Retry-After": str(RATE_LIMIT_WINDOW_SECONDS)},
            )
        return await call_next(request)
