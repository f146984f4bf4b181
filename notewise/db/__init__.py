"""
Database module for Notewise.

Provides the SQLAlchemy model and session management for saved notes.
"""

from notewise.db.models import Base, NoteRow
from notewise.db.session import (
    check_connection,
    get_engine,
    get_sessionmaker,
    init_db,
    session_scope,
)

__all__ = [
    "Base",
    "check_connection",
    "NoteRow",
    "get_engine",
    "get_sessionmaker",
    "init_db",
    "session_scope",
]
