"""Bearer token handling for identity-provider issued JWTs."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from terrin.config import settings


def decode_token(token: str) -> dict[str, Any]:
    """Verify a bearer token and return its claims.

    Raises ``ValueError`` when the signature, expiry, issuer or audience
    checks fail.
    """
    options = {"verify_aud": bool(settings.IDENTITY_AUDIENCE)}
    kwargs: dict[str, Any] = {}
    if settings.IDENTITY_AUDIENCE:
        kwargs["audience"] = settings.IDENTITY_AUDIENCE
    if settings.IDENTITY_ISSUER:
        kwargs["issuer"] = settings.IDENTITY_ISSUER
    try:
        return jwt.decode(
            token,
            settings.IDENTITY_JWT_SECRET,
            algorithms=[settings.IDENTITY_JWT_ALGORITHM],
            options=options,
            **kwargs,
        )
    except JWTError as e:
        raise ValueError(str(e)) from e


def create_access_token(claims: dict[str, Any], expires_minutes: int | None = None) -> str:
    """Mint a token the way the identity provider does (demo users and tests)."""
    payload = dict(claims)
    now = datetime.now(timezone.utc)
    payload.setdefault("iat", now)
    payload["exp"] = now + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    if settings.IDENTITY_ISSUER:
        payload.setdefault("iss", settings.IDENTITY_ISSUER)
    if settings.IDENTITY_AUDIENCE:
        payload.setdefault("aud", settings.IDENTITY_AUDIENCE)
    return jwt.encode(payload, settings.IDENTITY_JWT_SECRET, algorithm=settings.IDENTITY_JWT_ALGORITHM)
