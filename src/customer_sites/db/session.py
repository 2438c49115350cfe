"""Database session management.

Provides engines for the relational backend, cached per database URL so
every request reuses the same persistent binding.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from customer_sites.config import DEFAULT_DATABASE_URL

# Module-level engine cache for connection pooling
_engine_cache: dict[str, Engine] = {}


def get_engine(database_url: str | None = None) -> Engine:
    """Get SQLAlchemy engine for the database.

    Engines are cached by URL. For file-backed SQLite the parent directory
    is created on first use; in-memory SQLite uses a StaticPool so all
    sessions share one connection.

    Args:
        database_url: SQLAlchemy URL. Defaults to sqlite:///data/customer_sites.db.

    Returns:
        SQLAlchemy engine instance (cached).
    """
    if database_url is None:
        database_url = DEFAULT_DATABASE_URL

    if database_url in _engine_cache:
        return _engine_cache[database_url]

    url = make_url(database_url)
    kwargs: dict = {"echo": False}

    if url.get_backend_name() == "sqlite":
        # SQLite thread-safety config for FastAPI concurrency
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    else:
        kwargs["pool_pre_ping"] = True

    engine = create_engine(database_url, **kwargs)
    _engine_cache[database_url] = engine

    return engine


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """Context manager for database sessions with automatic cleanup.

    Commits on successful exit, rolls back on exception, and always
    closes the session.

    Example:
        with session_scope(factory) as session:
            session.add(row)
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

