"""
tests/conftest.py -- Shared test fixtures for Canary unit and integration tests.

This module provides:
  - memory_url(): unique named shared-memory SQLite URI per call
  - FakeClock: a settable clock for deterministic expiry tests
  - db / hasher / user_store / session_store / manager / service fixtures
  - api_client: TestClient wired to an isolated store via a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool, and the sweeper
runs sweeps via asyncio.to_thread. Plain :memory: DBs are per-connection and
would present a blank schema to each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

BCRYPT_ROUNDS must be set before any settings are read so hashing stays fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# Set before any core import so get_settings() never builds a slow hasher.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.db import Database
from auth.lifecycle import SessionManager
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.sweeper import SessionSweeper
from core.config import Settings

TEST_ROUNDS = 4
EPOCH = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def memory_url(prefix: str = "canary") -> str:
    """Return a fresh named shared-memory SQLite URL."""
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


class FakeClock:
    """Callable clock pinned to a settable instant. Whole seconds only, so
    epoch round-trips through the store compare exactly."""

    def __init__(self, now: datetime = EPOCH) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db() -> Generator[Database, None, None]:
    database = Database(memory_url())
    yield database
    database.close()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture
def user_store(db: Database, hasher: PasswordHasher) -> UserStore:
    return UserStore(db, hasher)


@pytest.fixture
def session_store(db: Database) -> SessionStore:
    return SessionStore(db)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def manager(session_store: SessionStore, clock: FakeClock) -> SessionManager:
    return SessionManager(session_store, clock=clock)


@pytest.fixture
def service(user_store: UserStore, manager: SessionManager) -> AuthService:
    return AuthService(user_store, manager)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(settings: Settings, db: Database, service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test objects into app.state so TestClient routes see an
    isolated test DB rather than the configured database. The sweeper is real
    but its interval is long enough that it never fires during a test.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.db = db
        app.state.auth_service = service
        app.state.sweeper = SessionSweeper(service.sessions, interval_seconds=99999)
        app.state.sweeper.start()
        yield
        await app.state.sweeper.stop()

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[tuple[TestClient, AuthService], None, None]:
    """Yield (client, service) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers against an isolated in-memory store. A user
    "testadmin" / "testpass123" exists before the client starts.

    follow_redirects=False so tests can assert on 303 Location headers from
    the form login and logout flows.
    """
    url = memory_url("api")
    settings = Settings(database_url=url, bcrypt_rounds=TEST_ROUNDS)
    database = Database(url)
    auth_service = AuthService.from_settings(database, settings)
    auth_service.create_user("testadmin", "testpass123")

    app.router.lifespan_context = _patch_lifespan(settings, database, auth_service)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client, auth_service

    database.close()
