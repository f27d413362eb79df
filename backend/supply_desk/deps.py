from __future__ import annotations

import hmac

from fastapi import Depends, Header, Request
from sqlalchemy.engine import Engine

from .admin_registry import AdminRegistry
from .auth import InvalidToken, TokenClaims, decode_token, extract_bearer
from .config import Settings
from .credentials import CredentialVerifier
from .errors import AuthError, forbidden


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_engine(request: Request) -> Engine:
    return request.app.state.engine


def get_registry(request: Request) -> AdminRegistry:
    return request.app.state.admin_registry


def get_verifier(request: Request) -> CredentialVerifier:
    return request.app.state.credential_verifier


def get_current_user(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> TokenClaims:
    token = extract_bearer(authorization)
    if not token:
        raise AuthError("authorization required")
    try:
        return decode_token(token, settings.jwt_secret)
    except InvalidToken as exc:
        raise AuthError(str(exc)) from exc


def require_admin(user: TokenClaims = Depends(get_current_user)) -> TokenClaims:
    # the flag was fixed when the token was issued; registry edits apply on next login
    if not user.is_admin:
        raise forbidden("admin required")
    return user


def require_api_token(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    supplied = (authorization or "").strip()
    if not supplied or not hmac.compare_digest(supplied.encode("utf-8"), settings.api_token.encode("utf-8")):
        raise AuthError("invalid API token")
