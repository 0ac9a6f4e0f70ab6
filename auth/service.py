"""
auth/service.py -- Signup, login, logout, OAuth completion, and session resolution.

AuthService owns the authentication state machine. It is built once in the
API lifespan with an explicit UserStore and SessionStore and parked on
app.state, so the routes and the authorization guard never reach for ambient
session state.

State machine per session token:
    (none) --signup/login/oauth--> active --logout--> (none)
                                   active --ttl passes--> expired --resolve/purge--> (none)

Errors raised here are core.errors types; api/main.py maps them to HTTP.
Raw session tokens are returned to the caller for the cookie and otherwise
only ever exist as HMAC hashes.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging
import re
import time

from sqlalchemy.exc import IntegrityError

from auth.models import OAuthProfile, Session, User
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import (
    authenticate_user,
    generate_session_token,
    hash_password,
    hash_session_token,
    password_policy_violation,
)
from core.errors import AuthenticationError, ValidationError

logger = logging.getLogger("moviesapi.auth.service")

# One "@", no whitespace, a dot in the domain. Deliverability is not checked.
_EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


class AuthService:
    """Authentication operations over an injected user store and session store.

    Usage:
        service = AuthService(UserStore(url), MemorySessionStore(), session_ttl_seconds=3600)
        user, token = service.signup("a@example.com", "s3cretpass")
        assert service.resolve(token) == user
        service.logout(token)
    """

    def __init__(
        self,
        user_store: UserStore,
        session_store: SessionStore,
        session_ttl_seconds: int,
        password_min_length: int = 8,
    ) -> None:
        self.user_store = user_store
        self.session_store = session_store
        self.session_ttl_seconds = session_ttl_seconds
        self.password_min_length = password_min_length

    # ------------------------------------------------------------------
    # Credential flows
    # ------------------------------------------------------------------

    def signup(self, email: str, password: str, previous_token: str | None = None) -> tuple[User, str]:
        """Register a local account and open a session for it.

        Raises ValidationError for a malformed email, a weak password, or an
        email that is already registered (local or OAuth).
        """
        email = email.strip().lower()
        if not _EMAIL_RE.fullmatch(email):
            raise ValidationError("Invalid email address.")
        problem = password_policy_violation(password, self.password_min_length)
        if problem:
            raise ValidationError(problem)
        if self.user_store.get_by_email(email) is not None:
            raise ValidationError("Email is already registered.")

        try:
            user_id = self.user_store.create_user(User(email=email, hashed_password=hash_password(password)))
        except IntegrityError as exc:
            # A concurrent signup for the same email won the insert.
            raise ValidationError("Email is already registered.") from exc

        user = self.user_store.get_by_id(user_id)
        logger.info("User %s signed up", user_id)
        self._end_session(previous_token)
        return user, self._start_session(user)

    def login(self, email: str, password: str, previous_token: str | None = None) -> tuple[User, str]:
        """Verify credentials and open a fresh session.

        Uses authenticate_user() which includes timing equalization [C1]. Do
        NOT inline get_by_email() + verify_password() -- that re-introduces
        the timing attack. Unknown email and wrong password raise the same
        AuthenticationError.

        A session presented with the login request is destroyed first so a
        pre-planted cookie cannot be promoted to an authenticated one.
        """
        user = authenticate_user(self.user_store, email.strip().lower(), password)
        if user is None:
            logger.info("Failed login attempt")
            raise AuthenticationError()

        self._end_session(previous_token)
        self.user_store.update_last_login(user.id)
        return user, self._start_session(user)

    def logout(self, token: str | None) -> None:
        """Destroy the session for token. A missing or unknown token is a no-op."""
        if self._end_session(token):
            logger.info("Session closed")

    # ------------------------------------------------------------------
    # Federated login
    # ------------------------------------------------------------------

    def complete_oauth_login(self, profile: OAuthProfile, previous_token: str | None = None) -> tuple[User, str]:
        """Find or create the user behind a verified OAuth profile and open a session.

        Lookup order:
          1. (provider, subject) -- returning user already linked.
          2. email -- first OAuth login for an existing account; link it.
          3. neither -- create a password-less account for the profile.

        An account already linked to a different identity of the same
        provider is not re-linked; the login is refused instead.
        """
        user = self.user_store.get_by_oauth(profile.provider, profile.subject)

        if user is None:
            user = self.user_store.get_by_email(profile.email)
            if user is not None:
                if user.oauth_subject is not None and user.oauth_provider == profile.provider:
                    logger.warning("OAuth login refused: %s already linked to another identity", user.id)
                    raise AuthenticationError()
                self.user_store.link_oauth(user.id, profile.provider, profile.subject, profile.display_name)
                logger.info("Linked %s identity to user %s", profile.provider, user.id)
            else:
                new_user = User(
                    email=profile.email,
                    oauth_provider=profile.provider,
                    oauth_subject=profile.subject,
                    display_name=profile.display_name,
                )
                try:
                    user_id = self.user_store.create_user(new_user)
                except IntegrityError as exc:
                    raise AuthenticationError() from exc
                logger.info("Created user %s from %s login", user_id, profile.provider)
                new_user.id = user_id
                user = new_user

        self.user_store.update_last_login(user.id)
        # Re-read so the caller sees linked identity and display name.
        user = self.user_store.get_by_id(user.id)
        self._end_session(previous_token)
        return user, self._start_session(user)

    # ------------------------------------------------------------------
    # Session resolution (authorization guard backend)
    # ------------------------------------------------------------------

    def resolve(self, token: str | None) -> User | None:
        """Return the user behind a session token, or None.

        None covers every failure: no token, unknown token, expired session,
        and a session whose user no longer exists. Expired sessions are
        deleted on sight rather than waiting for the periodic purge.
        """
        if not token:
            return None
        token_hash = hash_session_token(token)
        session = self.session_store.get(token_hash)
        if session is None:
            return None
        if session.is_expired(time.time()):
            self.session_store.delete(token_hash)
            return None
        return self.user_store.get_by_id(session.user_id)

    def purge_expired_sessions(self) -> int:
        removed = self.session_store.purge_expired()
        if removed:
            logger.info("Purged %d expired sessions", removed)
        return removed

    def _end_session(self, token: str | None) -> bool:
        if not token:
            return False
        return self.session_store.delete(hash_session_token(token))

    def _start_session(self, user: User) -> str:
        token = generate_session_token()
        now = time.time()
        self.session_store.save(
            Session(
                token_hash=hash_session_token(token),
                user_id=user.id,
                created_at=now,
                expires_at=now + self.session_ttl_seconds,
            )
        )
        return token
