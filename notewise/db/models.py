"""
SQLAlchemy ORM models for Notewise.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NoteRow(Base):
    """One processed upload and its (possibly partial) enrichment."""

    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String, nullable=False)
    file_type = Column(String, nullable=True)
    text_content = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)
    # Reason shown to the user when the summary path failed
    summary_error = Column(Text, nullable=True)
    questions = Column(JSON, nullable=False, default=list)
    questions_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        Index("idx_notes_created_at", "created_at"),
    )
