"""
catalog/models.py -- Domain dataclasses for the Movies API catalog.

These are pure data containers with zero logic. Lookup, validation of
references, and persistence live in catalog/store.py.

id is None before the record is written to the database; created_at and
updated_at are ISO 8601 strings set by the store.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Director:
    name: str
    birth_year: Optional[int] = None
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Movie:
    """A film in the catalog.

    director is free text: a director's id or name. It is not a foreign key
    unless the store runs with enforce_director_reference=True.
    """

    title: str
    year: int
    director: str
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
