"""
tests/test_rate_limits.py -- Integration tests for the login and signup rate limits [H2].

The suite runs with generous limits (see conftest.py). These tests tighten
them on the cached Settings for one test at a time; api.limiter reads the
limits on every check, so the change applies without rebuilding the app.
The limiter's counters are reset before and after each test so other tests
never see a partially used window.

Covers:
  - signup and login answer 429 once their window is used up
  - 429 uses the shared error envelope with code rate_limited
  - Retry-After carries the breached window length
  - the two limits are counted separately
"""

from __future__ import annotations

import pytest
from conftest import PASSWORD, unique_email

from api.limiter import limiter
from core.config import get_settings


@pytest.fixture
def tight_limits(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "signup_rate_limit", "2/hour")
    monkeypatch.setattr(settings, "login_rate_limit", "3/hour")
    limiter.reset()
    yield
    limiter.reset()


class TestSignupRateLimit:
    def test_third_signup_in_window_returns_429(self, client, tight_limits) -> None:
        statuses = [
            client.post("/auth/signup", json={"email": unique_email("burst"), "password": PASSWORD}).status_code
            for _ in range(3)
        ]
        assert statuses == [201, 201, 429]

    def test_429_envelope_and_retry_after(self, client, tight_limits) -> None:
        for _ in range(2):
            client.post("/auth/signup", json={"email": unique_email("env"), "password": PASSWORD})
        resp = client.post("/auth/signup", json={"email": unique_email("env"), "password": PASSWORD})
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limited"
        assert resp.headers["retry-after"] == "3600"

    def test_rejected_signup_creates_no_account(self, client, api_client, tight_limits) -> None:
        for _ in range(2):
            client.post("/auth/signup", json={"email": unique_email("fill"), "password": PASSWORD})
        email = unique_email("blocked")
        assert client.post("/auth/signup", json={"email": email, "password": PASSWORD}).status_code == 429
        assert api_client.auth_service.user_store.get_by_email(email) is None


class TestLoginRateLimit:
    def test_login_limited_even_with_correct_password(self, client, api_client, tight_limits) -> None:
        email = unique_email("brute")
        api_client.auth_service.signup(email, PASSWORD)

        for _ in range(3):
            assert client.post("/auth/login", json={"email": email, "password": "wrongpass1"}).status_code == 401

        resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limited"
        assert resp.headers["retry-after"] == "3600"

    def test_limits_are_counted_per_route(self, client, api_client, tight_limits) -> None:
        email = unique_email("separate")
        api_client.auth_service.signup(email, PASSWORD)
        for _ in range(2):
            client.post("/auth/signup", json={"email": unique_email("spend"), "password": PASSWORD})

        assert client.post("/auth/signup", json={"email": unique_email(), "password": PASSWORD}).status_code == 429
        assert client.post("/auth/login", json={"email": email, "password": PASSWORD}).status_code == 200

    def test_other_routes_are_not_limited(self, client, tight_limits) -> None:
        for _ in range(5):
            assert client.get("/auth/logout").status_code == 200
