from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import jwt

JWT_ALG = "HS256"
DEFAULT_TTL_SECONDS = 24 * 60 * 60


class InvalidToken(Exception):
    pass


@dataclass(frozen=True)
class TokenClaims:
    username: str
    full_name: str
    is_admin: bool
    expires_at: int


def make_token(
    username: str,
    full_name: str,
    is_admin: bool,
    secret: str,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    now: int | None = None,
) -> str:
    issued = int(time.time()) if now is None else int(now)
    payload: dict[str, Any] = {
        "username": username,
        "fullName": full_name,
        "isAdmin": bool(is_admin),
        "iat": issued,
        "exp": issued + int(ttl_seconds),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALG)


def decode_token(token: str, secret: str) -> TokenClaims:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALG],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidToken("token expired") from exc
    except jwt.PyJWTError as exc:
        raise InvalidToken("invalid token") from exc

    username = payload.get("username")
    if not isinstance(username, str) or not username:
        raise InvalidToken("invalid token")
    return TokenClaims(
        username=username,
        full_name=str(payload.get("fullName") or username),
        is_admin=bool(payload.get("isAdmin", False)),
        expires_at=int(payload["exp"]),
    )


def extract_bearer(authorization: str | None) -> str | None:
    """Accept both ``Bearer <token>`` and a bare token."""
    if not authorization:
        return None
    value = authorization.strip()
    if value.lower().startswith("bearer "):
        value = value.split(" ", 1)[1].strip()
    return value or None
