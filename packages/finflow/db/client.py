"""SQLAlchemy engine/session helpers for the ``finflow`` key-value store.

Usage
-----
from finflow.db.client import session_scope

with session_scope() as s:
    s.execute(...)

The database URL comes from the ``database_url`` argument, then
``FINFLOW_DATABASE_URL``, then ``DATABASE_URL``, then a SQLite file under
``./.finflow/``. The schema (a single table) is created on first use of each
URL.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from ..logging_setup import get_logger
from .models import Base

_ENGINES: dict[str, Engine] = {}
_SESSION_MAKERS: dict[str, sessionmaker[Session]] = {}

_logger = get_logger("finflow.db.client")


def default_database_url() -> str:
    path = (Path.cwd() / ".finflow" / "finflow.db").resolve()
    return f"sqlite+pysqlite:///{path}"


def resolve_database_url(override: str | None = None) -> str:
    for candidate in (override, os.getenv("FINFLOW_DATABASE_URL"), os.getenv("DATABASE_URL")):
        if candidate and candidate.strip():
            return candidate.strip()
    return default_database_url()


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the engine for the resolved URL, creating it (and the schema) once."""

    url = resolve_database_url(database_url)
    engine = _ENGINES.get(url)
    if engine is not None:
        return engine

    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, pool_pre_ping=True)
    Base.metadata.create_all(bind=engine)
    _ENGINES[url] = engine
    _SESSION_MAKERS[url] = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
    _logger.debug("db: engine ready backend=%s", parsed.get_backend_name())
    return engine


def get_session(*, database_url: str | None = None) -> Session:
    """Return a new session bound to the engine for the resolved URL."""

    url = resolve_database_url(database_url)
    get_engine(database_url=url)
    return _SESSION_MAKERS[url]()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engines() -> None:
    """Dispose every cached engine (tests, process shutdown)."""

    for engine in _ENGINES.values():
        engine.dispose()
    _ENGINES.clear()
    _SESSION_MAKERS.clear()


__all__ = [
    "default_database_url",
    "dispose_engines",
    "get_engine",
    "get_session",
    "resolve_database_url",
    "session_scope",
]
