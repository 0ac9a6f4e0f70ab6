"""
auth/oauth.py -- Authlib Google OAuth/OIDC configuration.

Reads configuration from core.config.get_settings() at module load. Google is
registered only when both GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are set;
otherwise oauth.create_client("google") returns None and the routes answer
as "not configured".

Security notes:
  [H1] Email verification is mandatory. google_profile_from_token() raises
       ValueError if the provider does not confirm the email is verified. An
       unverified email could belong to someone who typed in a victim's
       address, and would otherwise be linked to the victim's local account.

  OAuth state parameter (CSRF protection) is handled by authlib: the
  authorization redirect stores a random state in the Starlette
  SessionMiddleware cookie, and authorize_access_token() rejects a callback
  whose state does not match (MismatchingStateError, an OAuthError).

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging

from authlib.integrations.starlette_client import OAuth

from auth.models import OAuthProfile
from core.config import get_settings

logger = logging.getLogger("moviesapi.auth.oauth")

GOOGLE = "google"

# ---------------------------------------------------------------------------
# Authlib OAuth registry
# ---------------------------------------------------------------------------

oauth = OAuth()

_cfg = get_settings()

# Google -- OIDC discovery
if _cfg.google_enabled:
    oauth.register(
        name=GOOGLE,
        client_id=_cfg.google_client_id,
        client_secret=_cfg.google_client_secret,
        server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
        client_kwargs={"scope": "openid email profile"},
    )
    logger.info("Google OAuth provider registered")


# ---------------------------------------------------------------------------
# Profile extraction [H1]
# ---------------------------------------------------------------------------


def google_profile_from_token(token: dict) -> OAuthProfile:
    """Extract a verified OAuthProfile from a Google token response.

    The id_token claims (parsed by authlib into token["userinfo"]) include
    email, email_verified, sub, and name.

    [H1] The email claim is only accepted when email_verified is True.

    Raises:
        ValueError: If userinfo is missing, the email is unverified, or the
            email / sub claims are absent.
    """
    userinfo = token.get("userinfo")
    if not userinfo:
        raise ValueError("google OAuth: no userinfo in token response")

    if not userinfo.get("email_verified", False):
        raise ValueError(
            "google OAuth: email is not verified. "
            "The provider must confirm email ownership before login is allowed."
        )

    email = userinfo.get("email")
    subject_id = userinfo.get("sub")

    if not email or not subject_id:
        raise ValueError("google OAuth: missing email or sub claim in userinfo")

    return OAuthProfile(
        provider=GOOGLE,
        subject=str(subject_id),
        email=email,
        display_name=userinfo.get("name") or None,
    )
