"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py -- dataclasses own domain shape; stores and the auth
service do the work.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """Represents an authenticated identity in the Movies API.

    email is stored lower-cased and is unique across local and OAuth users, so
    an OAuth callback can match a local account by email and link it.

    hashed_password is None for OAuth-only users (they have no local password).
    oauth_provider / oauth_subject are None until the user logs in via OAuth
    for the first time, at which point link_oauth() fills them in.
    """

    email: str
    id: str | None = None
    hashed_password: str | None = None  # None = OAuth-only user
    oauth_provider: str | None = None  # "google"
    oauth_subject: str | None = None  # provider's stable user ID
    display_name: str | None = None
    created_at: str | None = None
    last_login: str | None = None

    @property
    def provider(self) -> str:
        """Name shown to clients: the linked OAuth provider, else "local"."""
        return self.oauth_provider or "local"


@dataclass
class Session:
    """Server-side binding of a session cookie to a user.

    token_hash is HMAC-SHA256(SECRET_KEY, raw_token). The raw token only ever
    lives in the client's cookie; a leaked sessions table cannot be replayed.
    Timestamps are epoch seconds so expiry checks are a float comparison.
    """

    token_hash: str
    user_id: str
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


@dataclass
class OAuthProfile:
    """Verified identity extracted from a provider's token response."""

    provider: str
    subject: str
    email: str
    display_name: str | None = None
