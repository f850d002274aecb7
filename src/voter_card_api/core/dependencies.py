"""FastAPI dependency injection for database sessions, identity, and admin access.

Provides get_async_session, identity resolution (bearer token or visitor id),
and the admin role check used by event management endpoints.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from voter_card_api.core.config import Settings, get_settings
from voter_card_api.core.database import session_scope
from voter_card_api.core.identity import Identity, User, Visitor, validate_visitor_id
from voter_card_api.core.security import TokenClaims, decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/token", auto_error=False)


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    async with session_scope() as session:
        yield session


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_claims(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenClaims | None:
    """Verify the bearer token if one was sent.

    Returns:
        The verified claims, or None when the request carries no bearer token.

    Raises:
        HTTPException: 401 if a token was sent but is invalid or expired.
    """
    if token is None:
        return None
    try:
        return decode_access_token(token, settings.jwt_secret_key, settings.jwt_algorithm)
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected bearer token: {}", exc)
        raise _credentials_exception() from exc


async def get_optional_identity(
    claims: Annotated[TokenClaims | None, Depends(get_token_claims)],
    x_visitor_id: Annotated[str | None, Header(description="Client-generated visitor identifier")] = None,
    visitor_id: Annotated[str | None, Query(description="Visitor identifier (fallback for links)")] = None,
) -> Identity | None:
    """Resolve the effective identity of the caller.

    Precedence: authenticated user (bearer token), then the ``X-Visitor-Id``
    header, then the ``visitor_id`` query parameter.

    Raises:
        HTTPException: 400 if a visitor id is present but malformed.
    """
    if claims is not None:
        return User(claims.subject)

    raw_visitor_id = x_visitor_id or visitor_id
    if raw_visitor_id is None:
        return None
    try:
        return Visitor(validate_visitor_id(raw_visitor_id))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


async def get_identity(
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> Identity:
    """Require an identity (visitor or user) for per-voter endpoints.

    Raises:
        HTTPException: 400 if the request carries neither a token nor a visitor id.
    """
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing identity: send a bearer token or an X-Visitor-Id header",
        )
    return identity


async def require_admin(
    claims: Annotated[TokenClaims | None, Depends(get_token_claims)],
) -> TokenClaims:
    """Require a bearer token carrying the admin role.

    Raises:
        HTTPException: 401 without a token, 403 for non-admin roles.
    """
    if claims is None:
        raise _credentials_exception()
    if not claims.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role '{claims.role}' does not have access to this resource",
        )
    return claims
