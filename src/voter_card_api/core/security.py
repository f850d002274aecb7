"""Bearer token verification for signed-in voters and administrators.

Tokens are issued by the external auth provider. This service only verifies
them and reads two claims: ``sub`` (stable user id, used as the ``User``
identity) and ``role`` (``voter`` or ``admin``). :func:`create_access_token`
mints compatible tokens for local tooling and tests.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

ROLE_ADMIN = "admin"
ROLE_VOTER = "voter"


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Verified claims of an access token."""

    subject: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def create_access_token(
    subject: str,
    role: str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_minutes: int = 30,
) -> str:
    """Mint an access token in the auth provider's format.

    Args:
        subject: Stable user id.
        role: ``voter`` or ``admin``.
        secret_key: Shared signing secret.
        algorithm: JWT signing algorithm.
        expires_minutes: Lifetime; negative values produce an already expired token.

    Returns:
        The encoded JWT.
    """
    payload = {
        "sub": subject,
        "role": role,
        "type": "access",
        "exp": datetime.now(UTC) + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_access_token(token: str, secret_key: str, algorithm: str = "HS256") -> TokenClaims:
    """Verify an access token and extract its claims.

    A missing ``role`` claim is treated as an ordinary voter.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired.
        jwt.InvalidTokenError: If the signature, algorithm, subject or token
            type is invalid.
    """
    payload = jwt.decode(token, secret_key, algorithms=[algorithm], options={"require": ["exp", "sub"]})
    if payload.get("type", "access") != "access":
        msg = f"Unexpected token type '{payload['type']}'"
        raise jwt.InvalidTokenError(msg)
    subject = str(payload["sub"]).strip()
    if not subject:
        msg = "Token subject is empty"
        raise jwt.InvalidTokenError(msg)
    return TokenClaims(subject=subject, role=str(payload.get("role") or ROLE_VOTER))
