"""
tests/conftest.py -- Shared fixtures for credgate tests.

This module provides:
  - FakeClock / clock: a settable clock for TokenAuthority so expiry can be
    tested without waiting 30 days
  - settings / authority: a Settings object with a known secret and a
    TokenAuthority built from it
  - vault: a PasswordVault with a small pool, closed after each test
  - api_client: TestClient over the real app with the real lifespan

JWT_SECRET and DEBUG must be set before any project import: the API
lifespan reads get_settings(), which refuses to start without a secret
outside debug mode.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from datetime import datetime, timedelta, timezone

# CRITICAL: set before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("JWT_SECRET", "test-only-signing-secret-0123456789abcdef")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.passwords import PasswordVault
from auth.tokens import TokenAuthority
from core.config import Settings

TEST_SECRET = "first-test-secret-aaaaaaaaaaaaaaaaaaaaaaaa"


class FakeClock:
    """Callable clock whose current time only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, jwt_secret=TEST_SECRET)


@pytest.fixture
def authority(settings: Settings, clock: FakeClock) -> TokenAuthority:
    return TokenAuthority(settings, clock=clock)


@pytest.fixture
def vault() -> Generator[PasswordVault, None, None]:
    v = PasswordVault(max_workers=2)
    yield v
    v.close()


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, TokenAuthority], None, None]:
    """Yield (client, authority) for API integration tests.

    authority is the instance the lifespan attached to app.state, so tokens
    it issues are signed with the same secret the routes verify against.
    base_url must be a host TrustedHostMiddleware accepts.
    """
    with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
        yield client, app.state.token_authority
