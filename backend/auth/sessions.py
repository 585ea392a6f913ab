# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Server-side session stores.

A store maps an opaque, unguessable session id to a user id until the
session expires or is invalidated.  The authenticator only talks to the
``SessionStore`` interface; which backend sits behind it is a deployment
choice (``SESSION_BACKEND``).

* ``DatabaseSessionStore`` – rows in the ``sessions`` table.  Survives
  restarts and is shared by every worker process.
* ``MemorySessionStore``   – a lock-guarded dict.  Lives and dies with the
  process; fine for a single worker or for tests.
"""

import secrets
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from sqlalchemy.orm import sessionmaker

from database import translate_db_errors
from models.session import LoginSession


@dataclass(frozen=True)
class SessionRecord:
    session_id: str
    user_id: int
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return _as_utc(self.expires_at) <= (now or _utcnow())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_session_id() -> str:
    """256 bits from the OS CSPRNG, URL-safe."""
    return secrets.token_urlsafe(32)


class SessionStore(ABC):
    """get / create / invalidate by opaque session id."""

    @abstractmethod
    def create(self, user_id: int, ttl: timedelta) -> SessionRecord:
        ...

    @abstractmethod
    def get(self, session_id: str) -> Optional[SessionRecord]:
        """Return the live session, or None if unknown or expired."""

    @abstractmethod
    def invalidate(self, session_id: str) -> None:
        """Destroy the session.  Unknown ids are ignored."""

    @abstractmethod
    def purge_expired(self) -> int:
        """Drop every expired session; return how many were removed."""


# ---------------------------------------------------------------------------
# Database-backed store
# ---------------------------------------------------------------------------


class DatabaseSessionStore(SessionStore):
    """
    Sessions persisted in the ``sessions`` table.

    Uses its own short-lived DB sessions from *session_factory* so that a
    login or logout commits independently of the request's unit of work.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def create(self, user_id: int, ttl: timedelta) -> SessionRecord:
        record = SessionRecord(
            session_id=new_session_id(),
            user_id=user_id,
            expires_at=_utcnow() + ttl,
        )
        with self._session_factory() as db, translate_db_errors(db):
            db.add(LoginSession(
                session_id=record.session_id,
                user_id=record.user_id,
                expires_at=record.expires_at,
            ))
            db.commit()
        return record

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self._session_factory() as db, translate_db_errors(db):
            row = db.get(LoginSession, session_id)
            if row is None:
                return None
            record = SessionRecord(row.session_id, row.user_id, _as_utc(row.expires_at))
            if record.is_expired():
                db.delete(row)
                db.commit()
                return None
            return record

    def invalidate(self, session_id: str) -> None:
        with self._session_factory() as db, translate_db_errors(db):
            db.query(LoginSession).filter(LoginSession.session_id == session_id).delete(
                synchronize_session=False
            )
            db.commit()

    def purge_expired(self) -> int:
        with self._session_factory() as db, translate_db_errors(db):
            removed = db.query(LoginSession).filter(LoginSession.expires_at <= _utcnow()).delete(
                synchronize_session=False
            )
            db.commit()
        return removed


# ---------------------------------------------------------------------------
# In-process store
# ---------------------------------------------------------------------------


class MemorySessionStore(SessionStore):
    """Thread-safe dict of sessions, valid for the lifetime of the process."""

    def __init__(self):
        self._sessions: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def create(self, user_id: int, ttl: timedelta) -> SessionRecord:
        record = SessionRecord(new_session_id(), user_id, _utcnow() + ttl)
        with self._lock:
            self._sessions[record.session_id] = record
        return record

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            record = self._sessions.get(session_id)
            if record is None:
                return None
            if record.is_expired():
                del self._sessions[session_id]
                return None
            return record

    def invalidate(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def purge_expired(self) -> int:
        now = _utcnow()
        with self._lock:
            expired = [sid for sid, rec in self._sessions.items() if rec.is_expired(now)]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)


def build_session_store(backend: str, session_factory: sessionmaker) -> SessionStore:
    if backend == "memory":
        return MemorySessionStore()
    if backend == "database":
        return DatabaseSessionStore(session_factory)
    raise ValueError(f"Unknown session backend: {backend!r}")
