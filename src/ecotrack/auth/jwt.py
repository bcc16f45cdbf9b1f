"""HS256 access tokens. The subject claim is the user id.

Issuing tokens to end users (login, registration) belongs to the identity
service in front of this API; create_access_token exists for operators and
tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from ecotrack.config import get_settings


def create_access_token(user_id: int, expires_in: timedelta | None = None) -> str:
    """Encode an access token for a user."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    lifetime = expires_in or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + lifetime,
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """Decode and validate a token.

    Raises:
        jwt.InvalidTokenError: bad signature, expired, wrong issuer or type.
    """
    settings = get_settings()
    payload: dict[str, Any] = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        issuer=settings.jwt_issuer,
        options={"require": ["sub", "exp", "iat", "iss"]},
    )
    if payload.get("type") != expected_type:
        msg = f"Expected {expected_type} token"
        raise jwt.InvalidTokenError(msg)
    return payload
