"""Unit tests for auth/tokens.py -- password hashing, policy, and session tokens."""

import pytest

from auth.models import User
from auth.store import UserStore
from auth.tokens import (
    authenticate_user,
    generate_session_token,
    hash_password,
    hash_session_token,
    password_policy_violation,
    verify_password,
)


class TestPasswordHashing:
    def test_round_trip(self) -> None:
        hashed = hash_password("s3cretpass")
        assert hashed.startswith("$2")
        assert verify_password("s3cretpass", hashed)
        assert not verify_password("s3cretpasS", hashed)

    def test_hashes_are_salted(self) -> None:
        assert hash_password("s3cretpass") != hash_password("s3cretpass")

    def test_malformed_hash_is_false_not_error(self) -> None:
        assert verify_password("anything1", "not-a-bcrypt-hash") is False


class TestPasswordPolicy:
    @pytest.mark.parametrize("password", ["s3cretpass", "Correct Horse 9", "12345abc"])
    def test_acceptable(self, password) -> None:
        assert password_policy_violation(password, 8) is None

    @pytest.mark.parametrize(
        "password, fragment",
        [
            ("a1", "at least 8"),
            ("abcdefghij", "letter and one digit"),
            ("1234567890", "letter and one digit"),
            ("a1" * 40, "at most 72 bytes"),
        ],
    )
    def test_rejected(self, password, fragment) -> None:
        assert fragment in password_policy_violation(password, 8)

    def test_custom_min_length(self) -> None:
        assert password_policy_violation("abc12345", 12) is not None


class TestSessionTokens:
    def test_tokens_are_unique_and_long(self) -> None:
        tokens = {generate_session_token() for _ in range(50)}
        assert len(tokens) == 50
        assert all(len(t) >= 43 for t in tokens)

    def test_hash_is_deterministic_hex(self) -> None:
        token = generate_session_token()
        assert hash_session_token(token) == hash_session_token(token)
        assert len(hash_session_token(token)) == 64
        assert hash_session_token(token) != token


class TestAuthenticateUser:
    @pytest.fixture
    def store(self):
        s = UserStore("sqlite:///:memory:")
        s.create_user(User(email="local@example.com", hashed_password=hash_password("s3cretpass")))
        s.create_user(User(email="oauth@example.com", oauth_provider="google", oauth_subject="42"))
        yield s
        s.close()

    def test_success(self, store) -> None:
        user = authenticate_user(store, "local@example.com", "s3cretpass")
        assert user is not None
        assert user.email == "local@example.com"

    def test_wrong_password(self, store) -> None:
        assert authenticate_user(store, "local@example.com", "wrongpass1") is None

    def test_unknown_email(self, store) -> None:
        assert authenticate_user(store, "ghost@example.com", "s3cretpass") is None

    def test_oauth_only_account_has_no_password(self, store) -> None:
        assert authenticate_user(store, "oauth@example.com", "s3cretpass") is None
