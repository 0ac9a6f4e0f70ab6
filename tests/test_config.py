"""Unit tests for core/config.py -- Settings validation rules.

Settings() is constructed directly (not through the get_settings() cache)
so each test sees only the environment it sets up with monkeypatch.
"""

import pytest
from pydantic import ValidationError

from core.config import Settings

_KEY = "k" * 32


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DEBUG", "SECRET_KEY", "SESSION_BACKEND", "LIST_DEFAULT_LIMIT", "LIST_MAX_LIMIT"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestSecretKey:
    def test_production_requires_secret_key(self, clean_env) -> None:
        with pytest.raises(ValidationError, match="SECRET_KEY is required"):
            _settings(debug=False)

    def test_debug_generates_secret_key(self, clean_env) -> None:
        settings = _settings(debug=True)
        assert len(settings.secret_key) >= 32

    def test_short_secret_key_rejected(self, clean_env) -> None:
        with pytest.raises(ValidationError, match="at least 32"):
            _settings(secret_key="too-short")

    def test_secret_key_from_environment(self, clean_env) -> None:
        clean_env.setenv("SECRET_KEY", _KEY)
        assert _settings().secret_key == _KEY


class TestDefaults:
    def test_defaults(self, clean_env) -> None:
        settings = _settings(secret_key=_KEY)
        assert settings.session_cookie_name == "sid"
        assert settings.session_ttl_seconds == 86400
        assert settings.session_backend == "sql"
        assert settings.list_default_limit == 100
        assert settings.list_max_limit == 500
        assert settings.enforce_director_reference is False
        assert settings.google_enabled is False

    def test_google_enabled_needs_both_credentials(self, clean_env) -> None:
        assert not _settings(secret_key=_KEY, google_client_id="id").google_enabled
        assert _settings(secret_key=_KEY, google_client_id="id", google_client_secret="secret").google_enabled

    def test_list_settings_parse_json(self, clean_env) -> None:
        clean_env.setenv("ALLOWED_HOSTS", '["api.example.com"]')
        assert _settings(secret_key=_KEY).allowed_hosts == ["api.example.com"]


class TestLimits:
    def test_unknown_session_backend_rejected(self, clean_env) -> None:
        with pytest.raises(ValidationError):
            _settings(secret_key=_KEY, session_backend="redis")

    def test_default_limit_above_max_rejected(self, clean_env) -> None:
        with pytest.raises(ValidationError):
            _settings(secret_key=_KEY, list_default_limit=600, list_max_limit=500)

    def test_tiny_session_ttl_rejected(self, clean_env) -> None:
        with pytest.raises(ValidationError):
            _settings(secret_key=_KEY, session_ttl_seconds=5)

    def test_weak_password_minimum_rejected(self, clean_env) -> None:
        with pytest.raises(ValidationError):
            _settings(secret_key=_KEY, password_min_length=4)
