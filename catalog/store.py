"""
catalog/store.py -- SQLAlchemy-backed persistence layer for directors and movies.

Uses SQLAlchemy Core (not ORM) so the domain dataclasses in catalog/models.py
remain the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. CatalogStore is the repository (one clean
interface per entity). The _row_to_* functions are the mappers. Route
handlers never touch SQL directly.

Errors: lookups of an unknown or malformed id raise core.errors.NotFoundError;
a movie whose director reference does not resolve (only when
enforce_director_reference is on) raises core.errors.ValidationError. Both
pass through the API layer unchanged.

Atomicity: every write is a single INSERT / UPDATE / DELETE statement keyed
by id. There are no cross-record transactions.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = CatalogStore()                                # SQLite default
    store = CatalogStore("postgresql://user:pw@host/db")  # PostgreSQL
    director = store.create_director(Director(name="Agnes Varda", birth_year=1928))
    store.update_director(director.id, Director(name="Agnès Varda", birth_year=1928))
    store.list_directors(limit=20, offset=0)
    store.close()
"""

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, Integer, MetaData, String, Table, or_, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from catalog.models import Director, Movie
from core.db import make_engine
from core.errors import NotFoundError, ValidationError
from core.ids import is_valid_id, new_id

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'movies_api_catalog.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_directors = Table(
    "directors",
    metadata,
    Column("id", String(24), primary_key=True),
    Column("name", String(200), nullable=False, index=True),
    Column("birth_year", Integer),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_movies = Table(
    "movies",
    metadata,
    Column("id", String(24), primary_key=True),
    Column("title", String(300), nullable=False),
    Column("year", Integer, nullable=False),
    Column("director", String(200), nullable=False),  # free text: director id or name
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_id(record_id: str, label: str) -> None:
    """Malformed ids cannot exist; answer 404 without touching the database."""
    if not is_valid_id(record_id):
        raise NotFoundError(f"{label} not found.")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CatalogStore:
    def __init__(self, db_url: str = _DEFAULT_DB_URL, enforce_director_reference: bool = False) -> None:
        self.engine: Engine = make_engine(db_url)
        self.enforce_director_reference = enforce_director_reference
        metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /api/health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    # ------------------------------------------------------------------
    # Directors
    # ------------------------------------------------------------------

    def list_directors(self, limit: int = 100, offset: int = 0) -> list[Director]:
        """Return one page of directors, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _directors.select()
                .order_by(_directors.c.created_at, _directors.c.id)
                .limit(limit)
                .offset(offset)
            ).fetchall()
        return [_row_to_director(r) for r in rows]

    def get_director(self, director_id: str) -> Director:
        _require_id(director_id, "Director")
        with self.engine.connect() as conn:
            row = conn.execute(_directors.select().where(_directors.c.id == director_id)).fetchone()
        if row is None:
            raise NotFoundError("Director not found.")
        return _row_to_director(row)

    def create_director(self, director: Director) -> Director:
        """Insert a director and return the stored record with its generated id."""
        director_id = new_id()
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _directors.insert().values(
                    id=director_id,
                    name=director.name,
                    birth_year=director.birth_year,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return self.get_director(director_id)

    def update_director(self, director_id: str, director: Director) -> Director:
        """Replace every mutable field of a director. Raises NotFoundError if absent."""
        _require_id(director_id, "Director")
        with self.engine.connect() as conn:
            result = conn.execute(
                _directors.update()
                .where(_directors.c.id == director_id)
                .values(name=director.name, birth_year=director.birth_year, updated_at=_now_iso())
            )
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError("Director not found.")
        return self.get_director(director_id)

    def delete_director(self, director_id: str) -> None:
        """Delete a director. Movies naming it are left as they are (free-text reference)."""
        _require_id(director_id, "Director")
        with self.engine.connect() as conn:
            result = conn.execute(_directors.delete().where(_directors.c.id == director_id))
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError("Director not found.")

    def director_exists(self, reference: str) -> bool:
        """Return True if reference is an existing director's id or exact name."""
        with self.engine.connect() as conn:
            row = conn.execute(
                select(_directors.c.id)
                .where(or_(_directors.c.id == reference, _directors.c.name == reference))
                .limit(1)
            ).fetchone()
        return row is not None

    # ------------------------------------------------------------------
    # Movies
    # ------------------------------------------------------------------

    def list_movies(self, limit: int = 100, offset: int = 0) -> list[Movie]:
        """Return one page of movies, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _movies.select().order_by(_movies.c.created_at, _movies.c.id).limit(limit).offset(offset)
            ).fetchall()
        return [_row_to_movie(r) for r in rows]

    def get_movie(self, movie_id: str) -> Movie:
        _require_id(movie_id, "Movie")
        with self.engine.connect() as conn:
            row = conn.execute(_movies.select().where(_movies.c.id == movie_id)).fetchone()
        if row is None:
            raise NotFoundError("Movie not found.")
        return _row_to_movie(row)

    def create_movie(self, movie: Movie) -> Movie:
        """Insert a movie and return the stored record with its generated id."""
        self._check_director_reference(movie.director)
        movie_id = new_id()
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _movies.insert().values(
                    id=movie_id,
                    title=movie.title,
                    year=movie.year,
                    director=movie.director,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return self.get_movie(movie_id)

    def update_movie(self, movie_id: str, movie: Movie) -> Movie:
        """Replace every mutable field of a movie. Raises NotFoundError if absent.

        The id is checked before the director reference so a missing movie
        is reported as 404 even when the payload would also fail validation.
        """
        _require_id(movie_id, "Movie")
        if self.enforce_director_reference:
            self.get_movie(movie_id)
            self._check_director_reference(movie.director)
        with self.engine.connect() as conn:
            result = conn.execute(
                _movies.update()
                .where(_movies.c.id == movie_id)
                .values(title=movie.title, year=movie.year, director=movie.director, updated_at=_now_iso())
            )
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError("Movie not found.")
        return self.get_movie(movie_id)

    def delete_movie(self, movie_id: str) -> None:
        _require_id(movie_id, "Movie")
        with self.engine.connect() as conn:
            result = conn.execute(_movies.delete().where(_movies.c.id == movie_id))
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError("Movie not found.")

    def _check_director_reference(self, reference: str) -> None:
        if self.enforce_director_reference and not self.director_exists(reference):
            raise ValidationError(f"Unknown director: {reference[:200]}")

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_director(row) -> Director:
    return Director(
        id=row.id,
        name=row.name,
        birth_year=row.birth_year,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_movie(row) -> Movie:
    return Movie(
        id=row.id,
        title=row.title,
        year=row.year,
        director=row.director,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
