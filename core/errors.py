"""
core/errors.py -- Domain error taxonomy for the Movies API.

Stores and the auth service raise these; api/main.py turns every subclass of
MoviesApiError into the shared ErrorResponse envelope with the class's status
code. Nothing below this layer knows about HTTP responses.

AuthenticationError and AuthorizationError deliberately share the same code
and default message. A caller cannot distinguish "wrong password" from "no
session" or "expired session" by inspecting the response.

Layer rule: core/ is the kernel. No imports from api/, auth/, or catalog/.
"""

from __future__ import annotations

_UNAUTHORIZED_MESSAGE = "Invalid or missing credentials."


class MoviesApiError(Exception):
    """Base class for errors that map directly onto an HTTP status."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, detail: str | None = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(MoviesApiError):
    """Malformed input, a missing required field, or a duplicate email."""

    status_code = 400
    code = "validation_error"
    default_message = "Request validation failed."


class AuthenticationError(MoviesApiError):
    """Bad credentials or a failed OAuth exchange."""

    status_code = 401
    code = "unauthorized"
    default_message = _UNAUTHORIZED_MESSAGE


class AuthorizationError(MoviesApiError):
    """Missing, unknown, or expired session on a protected route."""

    status_code = 401
    code = "unauthorized"
    default_message = _UNAUTHORIZED_MESSAGE


class NotFoundError(MoviesApiError):
    """Unknown or malformed resource identifier."""

    status_code = 404
    code = "not_found"
    default_message = "Resource not found."
