"""
API request and response models for the Movies API REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two.

Wire names follow the published schema (`_id`, `birthYear`, `displayName`).
Python attributes use snake_case with aliases; FastAPI serializes response
models by alias, and populate_by_name lets handlers build them by attribute.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User
from catalog.models import Director, Movie

# ---------------------------------------------------------------------------
# Errors and service
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /auth/signup.

    Only shape is checked here; email syntax, uniqueness and the password
    policy are enforced by AuthService.signup so every caller gets them.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "newuser@example.com", "password": "StrongPass123!"}},
    )

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login.

    No minimum lengths: an empty email or password is just a failed login
    and gets the same 401 as any other wrong credential.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "testuser@example.com", "password": "StrongPass123!"}},
    )

    email: str = Field(max_length=255)
    password: str = Field(max_length=255)


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="_id")
    email: str
    provider: str
    display_name: Optional[str] = Field(default=None, alias="displayName")

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, email=user.email, provider=user.provider, display_name=user.display_name)


class AuthResponse(BaseModel):
    """Response for a successful signup, login or OAuth callback."""

    model_config = ConfigDict(frozen=True)

    message: str
    user: UserResponse


# ---------------------------------------------------------------------------
# Directors
# ---------------------------------------------------------------------------


class DirectorPayload(BaseModel):
    """Request body for POST and PUT /api/directors."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    name: str = Field(min_length=1, max_length=200)
    birth_year: Optional[int] = Field(default=None, alias="birthYear", ge=1800, le=2100)

    def to_domain(self) -> Director:
        return Director(name=self.name, birth_year=self.birth_year)


class DirectorResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    birth_year: Optional[int] = Field(default=None, alias="birthYear")

    @classmethod
    def from_director(cls, director: Director) -> "DirectorResponse":
        """Factory Method -- the mapping lives beside the output model, not in route handlers."""
        return cls(id=director.id, name=director.name, birth_year=director.birth_year)


# ---------------------------------------------------------------------------
# Movies
# ---------------------------------------------------------------------------


class MoviePayload(BaseModel):
    """Request body for POST and PUT /api/movies.

    director is free text (an id or a name), matching the published schema.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    year: int = Field(ge=1800, le=2100)
    director: str = Field(min_length=1, max_length=200)

    def to_domain(self) -> Movie:
        return Movie(title=self.title, year=self.year, director=self.director)


class MovieResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="_id")
    title: str
    year: int
    director: str

    @classmethod
    def from_movie(cls, movie: Movie) -> "MovieResponse":
        return cls(id=movie.id, title=movie.title, year=movie.year, director=movie.director)
