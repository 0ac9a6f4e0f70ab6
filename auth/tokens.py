"""
auth/tokens.py -- Password hashing, session tokens, and cookie utilities.

Security design decisions:
  Passwords: bcrypt. Bcrypt is the right choice for low-entropy secrets
       (passwords) because its cost factor makes brute-force expensive. The
       _DUMMY_HASH constant enables timing equalization in authenticate_user()
       so response time does not reveal whether an email is registered [C1].

  Session tokens: secrets.token_urlsafe(32) gives 256 bits of entropy. We
       store HMAC-SHA256(SECRET_KEY, raw_token) so lookup is O(1) and a leaked
       sessions table cannot be replayed without SECRET_KEY. bcrypt's
       intentional slowness is unnecessary for high-entropy tokens.

  SECRET_KEY: sourced from core.config.get_settings(). The Settings class
       validates the key at startup: dev mode (DEBUG=true) auto-generates a
       random key with a warning; production mode refuses to start without one.

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
import secrets
from typing import TYPE_CHECKING

import bcrypt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("moviesapi.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton [M6]
# ---------------------------------------------------------------------------

_settings = get_settings()

# bcrypt only looks at the first 72 bytes; longer inputs are rejected at the
# API layer (max_length) and by the password policy below.
_BCRYPT_MAX_BYTES = 72

_LETTER_RE = re.compile(r"[A-Za-z]")
_DIGIT_RE = re.compile(r"\d")

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or an over-long password (bcrypt 4.x raises).
        return False


# Timing equalization dummy hash [C1].
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. Always call verify_password() even when the
# email is not registered -- bcrypt's constant work factor equalizes timing.
_DUMMY_HASH: str = hash_password("moviesapi_timing_dummy")


def password_policy_violation(password: str, min_length: int | None = None) -> str | None:
    """Return a human-readable reason the password is too weak, or None if it is acceptable.

    Policy: at least min_length characters (default PASSWORD_MIN_LENGTH), at
    most 72 bytes once UTF-8 encoded, at least one letter and one digit.
    """
    min_length = min_length or _settings.password_min_length
    if len(password) < min_length:
        return f"Password must be at least {min_length} characters."
    if len(password.encode("utf-8")) > _BCRYPT_MAX_BYTES:
        return f"Password must be at most {_BCRYPT_MAX_BYTES} bytes."
    if not _LETTER_RE.search(password) or not _DIGIT_RE.search(password):
        return "Password must contain at least one letter and one digit."
    return None


# ---------------------------------------------------------------------------
# User authentication (constant-time) [C1]
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate a local email/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email or OAuth-only account: bcrypt runs against _DUMMY_HASH
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None or user.hashed_password is None:
        # Equalize timing -- do NOT return early before running bcrypt [C1]
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# Session token generation and hashing
# ---------------------------------------------------------------------------


def generate_session_token() -> str:
    """Generate a new opaque session token (43 URL-safe chars, 256 bits)."""
    return secrets.token_urlsafe(32)


def hash_session_token(raw_token: str) -> str:
    """Return HMAC-SHA256(SECRET_KEY, raw_token) as a hex string.

    Deterministic, so the session store can look a session up by hash without
    ever seeing the raw cookie value.
    """
    return hmac.new(
        _settings.secret_key.encode(),
        raw_token.encode(),
        hashlib.sha256,
    ).hexdigest()


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response, token: str) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": cookie is not sent on cross-site POST (CSRF mitigation).
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the server-side session TTL so both expire together.
    """
    response.set_cookie(
        _settings.session_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.session_ttl_seconds,
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(
        _settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
    )
