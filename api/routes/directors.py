"""
api/routes/directors.py -- Director CRUD routes for the Movies API.

Routes:
  GET    /directors                -- list directors (public, paginated)
  POST   /directors                -- create director (session required)
  GET    /directors/{director_id}  -- director detail (public)
  PUT    /directors/{director_id}  -- replace director (session required)
  DELETE /directors/{director_id}  -- delete director (session required)

Reads are public; writes declare Depends(get_current_user) per handler
rather than on the router. The guard runs before the handler body, so an
unauthenticated PUT or DELETE of an unknown id answers 401, not 404.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from api.models import DirectorPayload, DirectorResponse, ErrorResponse, MessageResponse
from auth.dependencies import get_current_user
from auth.models import User
from catalog.store import CatalogStore
from core.config import get_settings

logger = logging.getLogger("moviesapi.api.directors")

_settings = get_settings()

router = APIRouter(tags=["Directors"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Director not found"}}
_WRITE_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    401: {"model": ErrorResponse, "description": "Invalid or missing credentials"},
}


@router.get("/directors", response_model=list[DirectorResponse], summary="List directors")
def list_directors(
    request: Request,
    limit: int = Query(default=_settings.list_default_limit, ge=1, le=_settings.list_max_limit),
    offset: int = Query(default=0, ge=0),
) -> list[DirectorResponse]:
    catalog: CatalogStore = request.app.state.catalog
    return [DirectorResponse.from_director(d) for d in catalog.list_directors(limit=limit, offset=offset)]


@router.post(
    "/directors",
    response_model=DirectorResponse,
    status_code=201,
    summary="Create a director",
    responses=_WRITE_ERRORS,
)
def create_director(
    request: Request,
    body: DirectorPayload,
    current_user: User = Depends(get_current_user),
) -> DirectorResponse:
    """Create a director. The generated `_id` is returned in the body."""
    catalog: CatalogStore = request.app.state.catalog
    director = catalog.create_director(body.to_domain())
    logger.info("Director %s created by user %s", director.id, current_user.id)
    return DirectorResponse.from_director(director)


@router.get(
    "/directors/{director_id}",
    response_model=DirectorResponse,
    summary="Get a director by id",
    responses=_NOT_FOUND,
)
def get_director(request: Request, director_id: str) -> DirectorResponse:
    catalog: CatalogStore = request.app.state.catalog
    return DirectorResponse.from_director(catalog.get_director(director_id))


@router.put(
    "/directors/{director_id}",
    response_model=DirectorResponse,
    summary="Update a director",
    responses={**_WRITE_ERRORS, **_NOT_FOUND},
)
def update_director(
    request: Request,
    director_id: str,
    body: DirectorPayload,
    current_user: User = Depends(get_current_user),
) -> DirectorResponse:
    """Replace every field of a director. Omitted optional fields are cleared."""
    catalog: CatalogStore = request.app.state.catalog
    director = catalog.update_director(director_id, body.to_domain())
    logger.info("Director %s updated by user %s", director_id, current_user.id)
    return DirectorResponse.from_director(director)


@router.delete(
    "/directors/{director_id}",
    response_model=MessageResponse,
    summary="Delete a director",
    responses={401: _WRITE_ERRORS[401], **_NOT_FOUND},
)
def delete_director(
    request: Request,
    director_id: str,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    catalog: CatalogStore = request.app.state.catalog
    catalog.delete_director(director_id)
    logger.info("Director %s deleted by user %s", director_id, current_user.id)
    return MessageResponse(message="Director deleted.")
