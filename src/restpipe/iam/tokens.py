"""
Access token helpers.
"""

from __future__ import annotations

import time
from typing import Any, Optional

import jwt

from ..core.errors import AuthenticationError
from ..settings import get_settings


def extract_bearer_token(authorization: Optional[str]) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise AuthenticationError("Missing Authorization header.")

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise AuthenticationError("Invalid Authorization header format.")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise AuthenticationError("Authorization must be: Bearer <token>.")
    return token


def build_access_token(account_id: Any, secret: str, *, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    issued_at = int(time.time())
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MIN

    payload = {
        "sub": str(account_id),
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + minutes * 60,
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, secret: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthenticationError("Access token is empty.")

    try:
        payload = jwt.decode(raw, secret, algorithms=[get_settings().JWT_ALGORITHM])
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid access token.") from exc

    if str(payload.get("type") or "").lower() != "access" or not payload.get("sub"):
        raise AuthenticationError("Token is not an access token.")

    return payload
