"""Access token issuance and validation (HS256 JWT)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from .config import get_settings
from .errors import TokenInvalidError

_ALGORITHM = "HS256"


def issue_token(claims: dict[str, Any], ttl_seconds: int | None = None) -> str:
    """Sign ``claims`` adding ``iat``/``exp``; ``sub`` must carry the user id."""
    settings = get_settings()
    ttl = ttl_seconds if ttl_seconds is not None else settings.token_ttl_seconds
    now = datetime.now(timezone.utc)
    payload = dict(claims)
    payload["iat"] = now
    payload["exp"] = now + timedelta(seconds=max(1, ttl))
    return jwt.encode(payload, settings.jwt_secret, algorithm=_ALGORITHM)


def verify_token(token: str) -> dict[str, Any]:
    if not token:
        raise TokenInvalidError("Authentication required.")
    try:
        payload = jwt.decode(token, get_settings().jwt_secret, algorithms=[_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenInvalidError("Token expired.")
    except jwt.InvalidTokenError:
        raise TokenInvalidError("Invalid token.")
    if not payload.get("sub"):
        raise TokenInvalidError("Invalid token.")
    return payload


def bearer_token(header_value: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    value = (header_value or "").strip()
    scheme, _, token = value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise TokenInvalidError("Access denied.")
    return token.strip()
