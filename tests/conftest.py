"""
tests/conftest.py -- Shared test fixtures for Movies API integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users, sessions, catalog
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: module-scoped TestClient plus the AuthService behind it
  - client: the same TestClient with an empty cookie jar for each test
  - signup(): helper that registers a user and returns its session token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

Environment variables must be set before any api/auth/core import so
get_settings() sees them: DEBUG auto-generates SECRET_KEY, ALLOWED_HOSTS
admits TestClient's "testserver" host, and the auth rate limits are raised
so repeated logins across the suite never trip them.
"""

from __future__ import annotations

import asyncio
import itertools
import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from unittest.mock import MagicMock

# CRITICAL: Set before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("SIGNUP_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.sessions import SqlSessionStore
from auth.store import UserStore
from catalog.store import CatalogStore
from core.config import get_settings

PASSWORD = "s3cretpass"

_email_counter = itertools.count()


def unique_email(prefix: str = "user") -> str:
    """Return an email address no other test in the session has used."""
    return f"{prefix}{next(_email_counter)}@example.com"


@dataclass
class ApiHarness:
    client: TestClient
    auth_service: AuthService
    catalog: CatalogStore


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def memory_db_url(name: str) -> str:
    return f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true"


def _make_test_stores(db_suffix: str) -> tuple[UserStore, SqlSessionStore, CatalogStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'auth', 'movies').
    """
    db_url = memory_db_url(f"test_movies_api_{db_suffix}")
    return UserStore(db_url=db_url), SqlSessionStore(db_url=db_url), CatalogStore(db_url=db_url)


def _patch_lifespan(auth_service: AuthService, catalog: CatalogStore):
    """Return an async context manager that replaces the real lifespan.

    The OAuth registry is a MagicMock by default; OAuth tests replace it on
    app.state with a fake client. The purge_task is a long-sleeping coroutine
    so shutdown can cancel a real asyncio.Task.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = auth_service.user_store
        app.state.session_store = auth_service.session_store
        app.state.auth_service = auth_service
        app.state.catalog = catalog
        app.state.oauth = MagicMock()
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness for API integration tests.

    One TestClient per test module for speed. The TestClient uses the real
    FastAPI app with a patched lifespan so tests hit real route handlers but
    use isolated in-memory stores.
    """
    user_store, session_store, catalog = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])
    auth_service = AuthService(
        user_store,
        session_store,
        session_ttl_seconds=get_settings().session_ttl_seconds,
        password_min_length=get_settings().password_min_length,
    )
    app.router.lifespan_context = _patch_lifespan(auth_service, catalog)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield ApiHarness(client=client, auth_service=auth_service, catalog=catalog)

    catalog.close()
    session_store.close()
    user_store.close()


@pytest.fixture
def client(api_client) -> Generator[TestClient, None, None]:
    """The module's TestClient with no cookies carried over from other tests."""
    api_client.client.cookies.clear()
    yield api_client.client
    api_client.client.cookies.clear()


def signup(client: TestClient, email: str | None = None, password: str = PASSWORD) -> str:
    """Register a fresh account through the API and return its session token.

    The client's cookie jar keeps the session, so subsequent calls on the
    same client are authenticated.
    """
    resp = client.post("/auth/signup", json={"email": email or unique_email(), "password": password})
    assert resp.status_code == 201, resp.text
    return resp.cookies[get_settings().session_cookie_name]
