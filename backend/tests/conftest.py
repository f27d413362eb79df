"""Shared fixtures: an isolated app per test (tmp SQLite database and admin file, fake auth provider)."""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from supply_desk.auth import make_token
from supply_desk.config import Settings
from supply_desk.credentials import CredentialVerifier
from supply_desk.db import get_engine
from supply_desk.main import create_app
from supply_desk.models import Base
from tests.consts import LDAP_URL, LDAP_USERS, TEST_API_TOKEN, TEST_SECRET


def fake_ldap(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    user = LDAP_USERS.get(body.get("username"))
    if user is None or user[0] != body.get("password"):
        return httpx.Response(200, json={"success": False})
    return httpx.Response(
        200,
        json={"success": True, "username": body["username"], "full_name": user[1]},
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{(tmp_path / 'applications.db').as_posix()}",
        admin_file=str(tmp_path / "admins.env"),
        admin_usernames="root",
        jwt_secret=TEST_SECRET,
        api_token=TEST_API_TOKEN,
        ldap_url=LDAP_URL,
        ldap_timeout_seconds=1.0,
        log_level="DEBUG",
    )


@pytest.fixture
def engine(settings):
    engine = get_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.state.credential_verifier = CredentialVerifier(LDAP_URL, timeout=1.0, transport=httpx.MockTransport(fake_ldap))
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice_headers() -> dict[str, str]:
    return bearer(make_token("alice", "Alice Archer", False, TEST_SECRET))


@pytest.fixture
def bob_headers() -> dict[str, str]:
    return bearer(make_token("bob", "Bob Baker", False, TEST_SECRET))


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return bearer(make_token("root", "Rita Root", True, TEST_SECRET))


@pytest.fixture
def api_headers() -> dict[str, str]:
    return {"Authorization": TEST_API_TOKEN}
