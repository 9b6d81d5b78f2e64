"""
tests/conftest.py -- Shared test fixtures for accountgate.

This module provides:
  - FakeEmailClient: records outgoing messages; can be told to fail
  - extract_token(): pulls the JWT out of an activation/reset email
  - store: a single-thread in-memory UserStore for unit tests
  - api_client: TestClient over the real app with an isolated store and fake mailer

Design: Named shared-memory SQLite URIs (not plain :memory:) back the API
fixture because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

DEBUG and RATE_LIMIT_ENABLED must be set before any app import so
get_settings() auto-generates the signing secrets and the limiter starts
disabled.
"""

from __future__ import annotations

import os
import re
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core/api import.
os.environ.setdefault("DEBUG", "true")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AccountService
from auth.store import UserStore
from core.config import get_settings
from mail.client import EmailDeliveryError
from mail.templates import EmailMessage

_TOKEN_RE = re.compile(r"/auth/(?:activate|password/reset)/([A-Za-z0-9_\-.]+)")


class FakeEmailClient:
    """In-memory EmailClient. Set fail=True to simulate a provider outage."""

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []
        self.fail = False

    def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise EmailDeliveryError("provider unavailable")
        self.sent.append(message)


def extract_token(message: EmailMessage) -> str:
    """Return the token embedded in an activation or reset link."""
    match = _TOKEN_RE.search(message.html)
    assert match, f"No link found in email body: {message.html!r}"
    return match.group(1)


def _patch_lifespan(user_store: UserStore, mailer: FakeEmailClient):
    """Return a lifespan that wires test doubles into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.mailer = mailer
        app.state.accounts = AccountService(user_store, mailer, get_settings())
        yield

    return test_lifespan


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def api_client() -> Generator[tuple[TestClient, UserStore, FakeEmailClient], None, None]:
    """Yield (client, store, mailer) backed by a fresh database per test.

    Each test gets its own named in-memory DB so signups in one test never
    collide with another's.
    """
    db_url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    user_store = UserStore(db_url)
    mailer = FakeEmailClient()

    app.router.lifespan_context = _patch_lifespan(user_store, mailer)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, user_store, mailer

    user_store.close()


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
