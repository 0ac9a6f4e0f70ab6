"""
auth/sessions.py -- Pluggable server-side session storage.

SessionStore is the interface the auth service depends on. Two backends:

  MemorySessionStore -- dict guarded by a lock. Single process only; sessions
      vanish on restart. Used by tests and SESSION_BACKEND=memory.
  SqlSessionStore    -- SQLAlchemy Core table. Survives restarts and can be
      shared by several workers pointed at the same DATABASE_URL.

Stores are keyed by token_hash (see auth.tokens.hash_session_token) and never
see the raw cookie value. Expiry is decided by the caller (Session.is_expired)
so both backends stay dumb; purge_expired() is the periodic sweep started by
the API lifespan, the same shape as a TTL cache purge.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Protocol

from sqlalchemy import Column, Float, MetaData, String, Table
from sqlalchemy.engine import Engine

from auth.models import Session
from core.db import make_engine

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'movies_api_auth.db'}"


class SessionStore(Protocol):
    """Storage contract for sessions. Each method is atomic per record."""

    def save(self, session: Session) -> None: ...

    def get(self, token_hash: str) -> Session | None: ...

    def delete(self, token_hash: str) -> bool: ...

    def purge_expired(self, now: float | None = None) -> int: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class MemorySessionStore:
    """Thread-safe in-process session store."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def save(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.token_hash] = session

    def get(self, token_hash: str) -> Session | None:
        with self._lock:
            return self._sessions.get(token_hash)

    def delete(self, token_hash: str) -> bool:
        with self._lock:
            return self._sessions.pop(token_hash, None) is not None

    def purge_expired(self, now: float | None = None) -> int:
        """Drop every expired session. Returns the number removed."""
        now = time.time() if now is None else now
        with self._lock:
            expired = [h for h, s in self._sessions.items() if s.is_expired(now)]
            for token_hash in expired:
                del self._sessions[token_hash]
        return len(expired)

    def close(self) -> None:
        with self._lock:
            self._sessions.clear()


# ---------------------------------------------------------------------------
# SQL backend
# ---------------------------------------------------------------------------

_metadata = MetaData()

_sessions = Table(
    "sessions",
    _metadata,
    Column("token_hash", String(64), primary_key=True),  # HMAC-SHA256 hex
    Column("user_id", String(24), nullable=False, index=True),
    Column("created_at", Float, nullable=False),
    Column("expires_at", Float, nullable=False, index=True),
)


class SqlSessionStore:
    """SQLAlchemy-backed session store.

    Usage:
        store = SqlSessionStore("sqlite:///sessions.db")
        store.save(Session(token_hash=h, user_id=uid, created_at=now, expires_at=now + ttl))
        session = store.get(h)
        store.purge_expired()
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def save(self, session: Session) -> None:
        with self.engine.connect() as conn:
            conn.execute(
                _sessions.insert().values(
                    token_hash=session.token_hash,
                    user_id=session.user_id,
                    created_at=session.created_at,
                    expires_at=session.expires_at,
                )
            )
            conn.commit()

    def get(self, token_hash: str) -> Session | None:
        with self.engine.connect() as conn:
            row = conn.execute(_sessions.select().where(_sessions.c.token_hash == token_hash)).fetchone()
        if row is None:
            return None
        return Session(
            token_hash=row.token_hash,
            user_id=row.user_id,
            created_at=row.created_at,
            expires_at=row.expires_at,
        )

    def delete(self, token_hash: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.token_hash == token_hash))
            conn.commit()
        return result.rowcount > 0

    def purge_expired(self, now: float | None = None) -> int:
        """Delete all sessions whose expiry has passed. Returns number of rows removed."""
        now = time.time() if now is None else now
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= now))
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


def build_session_store(backend: str, db_url: str = _DEFAULT_DB_URL) -> SessionStore:
    """Return the session store named by SESSION_BACKEND ("sql" or "memory")."""
    if backend == "memory":
        return MemorySessionStore()
    if backend == "sql":
        return SqlSessionStore(db_url)
    raise ValueError(f"Unknown session backend: {backend!r}")
