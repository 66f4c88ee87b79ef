from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from helpdesk.errors import Unauthenticated
from helpdesk.settings import Settings, get_settings


def issue_token(user: Any, settings: Settings | None = None) -> str:
    """Signed bearer token for ``user`` (anything with id, email and role)."""

    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "role": getattr(user.role, "value", user.role),
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    settings = settings or get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise Unauthenticated("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise Unauthenticated("Invalid token") from exc
    return claims


def token_user_id(claims: dict[str, Any]) -> int:
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise Unauthenticated("Invalid token subject") from exc
