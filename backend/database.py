# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy engine, session factory, declarative base, and the FastAPI
dependency that provides a DB session per request.

Every query is bounded by ``settings.db_timeout_seconds``: it is the pool
checkout timeout and the driver's connect/read/write timeout.  Timeouts and
lost connections surface as ``StoreUnavailable`` via
:func:`translate_db_errors`.
"""

from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from core.config import settings
from core.errors import StoreUnavailable


def build_engine(url: str, timeout: float) -> Engine:
    """Create an engine for *url* with every blocking step capped at *timeout* seconds."""
    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints on a thread pool; SQLite's default
        # same-thread check would reject that.  ``timeout`` is the busy wait.
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": timeout}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty DB
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    connect_args = {}
    if url.startswith("mysql+pymysql"):
        seconds = max(int(timeout), 1)
        connect_args = {
            "connect_timeout": seconds,
            "read_timeout": seconds,
            "write_timeout": seconds,
        }
    # pool_pre_ping keeps idle connections alive across MySQL's wait_timeout
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_timeout=timeout,
        connect_args=connect_args,
    )


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    # SQLite ignores ON DELETE CASCADE unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.database_url, settings.db_timeout_seconds)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    FastAPI dependency.  Yields a session for the duration of the request,
    then closes it (rolling back anything uncommitted).  Use with
    Depends(get_db).
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def translate_db_errors(db=None):
    """
    Map transient driver / pool failures to ``StoreUnavailable`` so callers
    can tell "try again" apart from business errors.  Other SQLAlchemy errors
    propagate unchanged.  When *db* is given it is rolled back first.
    """
    try:
        yield
    except (sa_exc.TimeoutError, sa_exc.OperationalError) as exc:
        if db is not None:
            db.rollback()
        raise StoreUnavailable() from exc
