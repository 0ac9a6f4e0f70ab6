"""
api/routes/movies.py -- Movie CRUD routes for the Movies API.

Routes:
  GET    /movies             -- list movies (public, paginated)
  POST   /movies             -- create movie (session required)
  GET    /movies/{movie_id}  -- movie detail (public)
  PUT    /movies/{movie_id}  -- replace movie (session required)
  DELETE /movies/{movie_id}  -- delete movie (session required)

The director field is stored as given. With ENFORCE_DIRECTOR_REFERENCE=true
the store rejects a director that matches no existing director id or name
with a 400 validation_error.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from api.models import ErrorResponse, MessageResponse, MoviePayload, MovieResponse
from auth.dependencies import get_current_user
from auth.models import User
from catalog.store import CatalogStore
from core.config import get_settings

logger = logging.getLogger("moviesapi.api.movies")

_settings = get_settings()

router = APIRouter(tags=["Movies"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Movie not found"}}
_UNAUTHORIZED = {401: {"model": ErrorResponse, "description": "Invalid or missing credentials"}}
_INVALID = {400: {"model": ErrorResponse, "description": "Invalid input"}}


@router.get("/movies", response_model=list[MovieResponse], summary="List movies")
def list_movies(
    request: Request,
    limit: int = Query(default=_settings.list_default_limit, ge=1, le=_settings.list_max_limit),
    offset: int = Query(default=0, ge=0),
) -> list[MovieResponse]:
    catalog: CatalogStore = request.app.state.catalog
    return [MovieResponse.from_movie(m) for m in catalog.list_movies(limit=limit, offset=offset)]


@router.post(
    "/movies",
    response_model=MovieResponse,
    status_code=201,
    summary="Create a movie",
    responses={**_INVALID, **_UNAUTHORIZED},
)
def create_movie(
    request: Request,
    body: MoviePayload,
    current_user: User = Depends(get_current_user),
) -> MovieResponse:
    catalog: CatalogStore = request.app.state.catalog
    movie = catalog.create_movie(body.to_domain())
    logger.info("Movie %s created by user %s", movie.id, current_user.id)
    return MovieResponse.from_movie(movie)


@router.get("/movies/{movie_id}", response_model=MovieResponse, summary="Get a movie by id", responses=_NOT_FOUND)
def get_movie(request: Request, movie_id: str) -> MovieResponse:
    catalog: CatalogStore = request.app.state.catalog
    return MovieResponse.from_movie(catalog.get_movie(movie_id))


@router.put(
    "/movies/{movie_id}",
    response_model=MovieResponse,
    summary="Update a movie",
    responses={**_INVALID, **_UNAUTHORIZED, **_NOT_FOUND},
)
def update_movie(
    request: Request,
    movie_id: str,
    body: MoviePayload,
    current_user: User = Depends(get_current_user),
) -> MovieResponse:
    """Replace title, year and director of an existing movie."""
    catalog: CatalogStore = request.app.state.catalog
    movie = catalog.update_movie(movie_id, body.to_domain())
    logger.info("Movie %s updated by user %s", movie_id, current_user.id)
    return MovieResponse.from_movie(movie)


@router.delete(
    "/movies/{movie_id}",
    response_model=MessageResponse,
    summary="Delete a movie",
    responses={**_UNAUTHORIZED, **_NOT_FOUND},
)
def delete_movie(
    request: Request,
    movie_id: str,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    catalog: CatalogStore = request.app.state.catalog
    catalog.delete_movie(movie_id)
    logger.info("Movie %s deleted by user %s", movie_id, current_user.id)
    return MessageResponse(message="Movie deleted.")
