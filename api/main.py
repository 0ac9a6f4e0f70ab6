"""
api/main.py -- FastAPI application entry point for the Movies API.

Exposes the Directors and Movies catalog over HTTP with cookie-session
authentication (local email/password and Google OAuth).

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost). Starlette wraps each add_middleware()
call around the previous ones, so the last one registered sees the request first:
  1. log_requests          -- method, path, status, latency per request
  2. SessionMiddleware     -- signed cookie holding the OAuth state between
                              redirect and callback (not the login session)
  3. SlowAPIMiddleware     -- no default limits configured; login and signup carry
                              their own @limiter.limit decorators (api.limiter)
  4. CORSMiddleware        -- adds CORS headers for allowed browser origins
  5. TrustedHostMiddleware -- rejects requests with unexpected Host headers

Lifespan handles startup (stores, auth service, session purge task) and
shutdown (cancel purge task, close DB connections) symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.directors import router as directors_router
from api.routes.movies import router as movies_router
from auth.oauth import oauth as oauth_client
from auth.service import AuthService
from auth.sessions import build_session_store
from auth.store import UserStore
from catalog.store import CatalogStore
from core.config import get_settings
from core.errors import MoviesApiError

API_VERSION = "1.0.0"

settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("moviesapi.api")

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI) -> None:
    """Delete expired sessions every SESSION_PURGE_INTERVAL_SECONDS.

    Expired sessions are already refused on sight by AuthService.resolve();
    this sweep only reclaims rows for sessions nobody presents again.
    CancelledError from task.cancel() during shutdown propagates out of
    asyncio.sleep and unwinds the coroutine.
    """
    while True:
        await asyncio.sleep(settings.session_purge_interval_seconds)
        app.state.auth_service.purge_expired_sessions()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the stores and the auth service, then start the purge task.

    Startup order:
      1. Stores -- users, sessions, catalog; all share DATABASE_URL.
      2. AuthService -- wraps the user and session stores.
      3. Purge task last -- references app.state.auth_service.
    """
    logger.info("Movies API starting up")
    app.state.user_store = UserStore(db_url=settings.database_url)
    app.state.session_store = build_session_store(settings.session_backend, settings.database_url)
    app.state.catalog = CatalogStore(
        db_url=settings.database_url,
        enforce_director_reference=settings.enforce_director_reference,
    )
    app.state.auth_service = AuthService(
        app.state.user_store,
        app.state.session_store,
        session_ttl_seconds=settings.session_ttl_seconds,
        password_min_length=settings.password_min_length,
    )
    app.state.oauth = oauth_client
    logger.info(
        "Auth initialized (session_backend=%s, google=%s)",
        settings.session_backend,
        "enabled" if settings.google_enabled else "disabled",
    )
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    app.state.purge_task.cancel()
    app.state.catalog.close()
    app.state.session_store.close()
    app.state.user_store.close()
    logger.info("Movies API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Movies API",
    description="CRUD API for directors and movies with cookie sessions and Google login.",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/api-docs",
    redoc_url=None,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# The last middleware added is the outermost. Registration order here is
# TrustedHost, CORS, SlowAPI, Session, so a request meets them in reverse:
# Session -> SlowAPI -> CORS -> TrustedHost. log_requests, registered after
# all of them, wraps the whole stack.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# authlib keeps the OAuth state in request.session between /auth/google and
# the callback. The cookie is separate from the login session cookie.
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie="oauth_state",
    same_site="lax",
    https_only=settings.secure_cookies,
)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(directors_router, prefix="/api")
app.include_router(movies_router, prefix="/api")


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(MoviesApiError)
async def movies_api_error_handler(request: Request, exc: MoviesApiError) -> JSONResponse:
    """Map domain errors from stores and the auth service onto their status codes."""
    response = _error_response(exc.status_code, exc.code, exc.message, exc.detail)
    if exc.status_code == 401:
        response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Retry-After is the length of the breached window (60 for "5/minute"),
    the longest a client can have to wait for its counter to reset.
    """
    retry_after = exc.limit.limit.get_expiry()
    response = _error_response(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 (not FastAPI's default 422) when the body or query params fail validation."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}" for err in exc.errors()
    )
    return _error_response(400, "validation_error", "Request validation failed.", problems or None)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404 on unknown path, 405, ...)."""
    response = _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No rate limit applied.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    catalog: CatalogStore = request.app.state.catalog
    database = "ok" if catalog.ping() else "error"
    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        version=API_VERSION,
        components={"app": "ok", "database": database},
    )
