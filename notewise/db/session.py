"""
Database session management for Notewise.

Engines are cached per URL so the API process and tests can point at
different databases without touching globals.
"""

from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from notewise.db.models import Base


@lru_cache(maxsize=8)
def get_engine(url: str) -> Engine:
    """Create (once per URL) a SQLAlchemy Engine.

    Args:
        url: SQLAlchemy database URL

    Returns:
        SQLAlchemy Engine instance
    """
    connect_args = {}
    if url.startswith("sqlite"):
        # Route handlers run in a thread pool
        connect_args["check_same_thread"] = False
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args, future=True)


def get_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    """Get a session factory bound to ``engine``."""
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """Yield a session with automatic commit/rollback.

    Usage:
        with session_scope(factory) as session:
            session.add(model)
    """
    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create all tables defined in the Base metadata."""
    Base.metadata.create_all(bind=engine)


def check_connection(engine: Engine) -> bool:
    """Check if the database answers a trivial query."""
    from sqlalchemy import text

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
