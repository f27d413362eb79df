"""Client for the external LDAP-backed authentication endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import httpx
from loguru import logger


class Outcome(str, Enum):
    OK = "ok"
    REJECTED = "rejected"
    TIMEOUT = "timeout"
    UPSTREAM_ERROR = "upstream_error"


@dataclass(frozen=True)
class Verification:
    outcome: Outcome
    username: str | None = None
    full_name: str | None = None
    upstream_status: int | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK


class CredentialVerifier:
    """
    Posts ``{username, password}`` to the auth endpoint.

    Every failure mode comes back as a ``Verification``; nothing is raised for
    bad credentials, timeouts, transport errors or malformed replies.
    """

    def __init__(self, url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def verify(self, username: str, password: str) -> Verification:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json={"username": username, "password": password})
        except httpx.TimeoutException:
            logger.warning("Auth provider timed out", auth_url=self.url, timeout=self.timeout)
            return Verification(Outcome.TIMEOUT)
        except httpx.HTTPError as exc:
            logger.error("Auth provider unreachable", auth_url=self.url, error=type(exc).__name__)
            return Verification(Outcome.UPSTREAM_ERROR)

        if response.status_code >= 500:
            logger.error("Auth provider failed", auth_url=self.url, upstream_status=response.status_code)
            return Verification(Outcome.UPSTREAM_ERROR, upstream_status=response.status_code)

        try:
            data = response.json()
        except ValueError:
            logger.error("Auth provider returned non-JSON body", upstream_status=response.status_code)
            return Verification(Outcome.UPSTREAM_ERROR, upstream_status=response.status_code)

        if not isinstance(data, dict) or not data.get("success"):
            return Verification(Outcome.REJECTED, upstream_status=response.status_code)

        canonical = str(data.get("username") or username).strip()
        full_name = str(data.get("full_name") or canonical).strip()
        return Verification(Outcome.OK, username=canonical, full_name=full_name, upstream_status=response.status_code)
