"""
auth/dependencies.py -- FastAPI Depends() helpers for the authorization guard.

The session cookie is the only credential. It is declared through
APIKeyCookie so the generated OpenAPI document advertises the "sessionAuth"
cookie scheme on every protected operation. auto_error=False keeps FastAPI
from answering 403 on a missing cookie; the guard answers 401 itself.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises AuthorizationError (401) if
unauthenticated. The response is identical for a missing cookie, an unknown
token, an expired session and a deleted user.

Guard dependencies run before the route handler body, so an unauthorized
request for a resource that does not exist answers 401, never 404.

Layer rule: no imports from api/ or catalog/.
  auth/dependencies.py may import from fastapi because this module is part of
  the FastAPI dependency injection system.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie

from auth.models import User
from auth.service import AuthService
from core.config import get_settings
from core.errors import AuthorizationError

session_cookie = APIKeyCookie(
    name=get_settings().session_cookie_name,
    scheme_name="sessionAuth",
    auto_error=False,
)


def try_get_current_user(request: Request, token: Optional[str] = Depends(session_cookie)) -> User | None:
    """Resolve the session cookie to a User. Never raises."""
    auth_service: AuthService = request.app.state.auth_service
    return auth_service.resolve(token)


def get_current_user(user: Optional[User] = Depends(try_get_current_user)) -> User:
    """Require a valid session. Raises AuthorizationError (401) otherwise.

    Use as a FastAPI dependency:
        @router.post("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    if user is None:
        raise AuthorizationError()
    return user
