"""
api/routes/auth.py -- Session authentication REST endpoints.

Routes:
  POST /auth/signup           -- create local account; sets session cookie; 201
  POST /auth/login            -- email/password login; sets session cookie; 200
  GET  /auth/logout           -- destroys session, clears cookie; always 200
  GET  /auth/google           -- 302 to Google's consent page
  GET  /auth/google/callback  -- code exchange; sets session cookie; 200
  GET  /auth/me               -- current user (requires session)

Security:
  [H2] signup and login are rate-limited per client IP (api.limiter).
  [C1] AuthService.login() provides timing equalization -- never inline it.
  [M5] Cache-Control: no-store on every response that sets or clears a session.
  Failed logins and failed OAuth callbacks raise AuthenticationError, whose
  body is identical to the guard's AuthorizationError.
"""

import logging

import httpx
from authlib.common.errors import AuthlibBaseError
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from api.limiter import limiter, login_limit, signup_limit
from api.models import AuthResponse, ErrorResponse, LoginRequest, MessageResponse, SignupRequest, UserResponse
from auth.dependencies import get_current_user
from auth.models import User
from auth.oauth import GOOGLE, google_profile_from_token
from auth.service import AuthService
from auth.tokens import clear_session_cookie, set_session_cookie
from core.config import get_settings
from core.errors import AuthenticationError, NotFoundError

logger = logging.getLogger("moviesapi.api.auth")

_settings = get_settings()

# Auth policy:
# - POST /auth/signup, /auth/login:     public, rate-limited
# - GET  /auth/logout:                  public -- ending a session needs no prior auth
# - GET  /auth/google, /callback:       public -- the OAuth dance is the authentication
# - GET  /auth/me:                      requires session (get_current_user)
router = APIRouter(prefix="/auth")

_UNAUTHORIZED = {401: {"model": ErrorResponse, "description": "Invalid or missing credentials"}}


def _session_response(status_code: int, message: str, user: User, token: str) -> JSONResponse:
    """Build the JSON body shared by signup, login and OAuth callback and attach the cookie."""
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(message=message, user=UserResponse.from_user(user)).model_dump(by_alias=True),
    )
    set_session_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


def _current_token(request: Request) -> str | None:
    return request.cookies.get(_settings.session_cookie_name)


# ---------------------------------------------------------------------------
# Credential endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=201,
    summary="Create account",
    responses={400: {"model": ErrorResponse, "description": "Invalid input"}},
)
@limiter.limit(signup_limit)  # [H2] below @router so the registered endpoint is the limited wrapper
def signup(request: Request, body: SignupRequest) -> JSONResponse:
    """Register with email and password. The new account is logged in immediately."""
    auth_service: AuthService = request.app.state.auth_service
    user, token = auth_service.signup(body.email, body.password, previous_token=_current_token(request))
    return _session_response(201, "User registered and logged in.", user, token)


@router.post("/login", response_model=AuthResponse, summary="Login with email and password", responses=_UNAUTHORIZED)
@limiter.limit(login_limit)  # [H2] brute-force mitigation
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set the session cookie.

    Wrong password and unknown email produce the same 401 body.
    """
    auth_service: AuthService = request.app.state.auth_service
    user, token = auth_service.login(body.email, body.password, previous_token=_current_token(request))
    return _session_response(200, "Login successful.", user, token)


@router.get("/logout", response_model=MessageResponse, summary="Logout current user")
def logout(request: Request) -> JSONResponse:
    """Destroy the current session, if any, and clear the cookie. Always 200."""
    auth_service: AuthService = request.app.state.auth_service
    auth_service.logout(_current_token(request))
    resp = JSONResponse(content=MessageResponse(message="Logged out.").model_dump())
    clear_session_cookie(resp)
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Google OAuth
# ---------------------------------------------------------------------------


@router.get(
    "/google",
    summary="Login with Google",
    status_code=302,
    response_class=RedirectResponse,
    responses={302: {"description": "Redirect to Google OAuth"}, 404: {"model": ErrorResponse}},
)
async def google_login(request: Request) -> RedirectResponse:
    """Redirect the browser to Google's authorization page.

    authlib generates the state value, stores it in the signed Starlette
    session cookie, and appends it to the authorization URL. The callback
    only succeeds when the returned state matches.
    """
    client = request.app.state.oauth.create_client(GOOGLE)
    if client is None:
        raise NotFoundError("Google login is not configured.")
    redirect_uri = _settings.oauth_callback_url or str(request.url_for("google_callback"))
    return await client.authorize_redirect(request, redirect_uri)


@router.get(
    "/google/callback",
    name="google_callback",
    response_model=AuthResponse,
    summary="Google OAuth callback",
    responses=_UNAUTHORIZED,
)
async def google_callback(request: Request) -> JSONResponse:
    """Finish the Google login and issue a session cookie.

    Flow:
      1. Exchange the authorization code (authlib verifies the state).
      2. Extract a verified profile -- raises ValueError if unverified [H1].
      3. AuthService finds, links, or creates the user and opens a session.
    """
    client = request.app.state.oauth.create_client(GOOGLE)
    if client is None:
        logger.warning("Google callback hit but Google OAuth is not configured")
        raise AuthenticationError()

    try:
        token = await client.authorize_access_token(request)
    except (AuthlibBaseError, httpx.HTTPError) as exc:
        logger.warning("Google token exchange failed: %s", exc)
        raise AuthenticationError() from exc

    try:
        profile = google_profile_from_token(token)
    except ValueError as exc:
        logger.warning("Google login rejected: %s", exc)
        raise AuthenticationError() from exc

    auth_service: AuthService = request.app.state.auth_service
    user, session_token = auth_service.complete_oauth_login(profile, previous_token=_current_token(request))
    return _session_response(200, "Google login successful.", user, session_token)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserResponse, summary="Current user", responses=_UNAUTHORIZED)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return identity information for the currently authenticated user."""
    return UserResponse.from_user(current_user)
