"""
Note Storage Abstraction Layer

Provides the insert/list contract the upload flow needs, independent of the
backing database. Implementations: SQLNoteStore.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine

from notewise.db.models import NoteRow
from notewise.db.session import get_sessionmaker, init_db, session_scope
from notewise.models import EnrichmentResult, ErrorMarker

logger = logging.getLogger(__name__)


@dataclass
class NoteRecord:
    """A processed upload as persisted."""

    filename: str
    text_content: str
    file_type: Optional[str] = None
    summary: Optional[str] = None
    summary_error: Optional[str] = None
    questions: List[Dict[str, Any]] = field(default_factory=list)
    questions_error: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_result(
        cls,
        *,
        filename: str,
        file_type: Optional[str],
        text_content: str,
        result: EnrichmentResult,
    ) -> "NoteRecord":
        """Flatten an enrichment result into a storable record."""
        record = cls(filename=filename, file_type=file_type, text_content=text_content)
        if isinstance(result.summary, ErrorMarker):
            record.summary_error = result.summary.reason
        else:
            record.summary = result.summary.body
        if isinstance(result.questions, ErrorMarker):
            record.questions_error = result.questions.reason
        else:
            record.questions = [q.model_dump(mode="json") for q in result.questions]
        return record


class NoteStore(ABC):
    """Abstract base class for note storage providers."""

    @abstractmethod
    def insert(self, record: NoteRecord) -> int:
        """Persist ``record`` and return its new id."""

    @abstractmethod
    def list_all(self) -> List[NoteRecord]:
        """Return every note, newest first."""


class SQLNoteStore(NoteStore):
    """SQLAlchemy-backed note store."""

    def __init__(self, engine: Engine, *, create_tables: bool = True):
        """Initialize store.

        Args:
            engine: SQLAlchemy engine
            create_tables: Create the notes table if missing
        """
        self.engine = engine
        self._sessions = get_sessionmaker(engine)
        if create_tables:
            init_db(engine)

    def insert(self, record: NoteRecord) -> int:
        row = NoteRow(
            filename=record.filename,
            file_type=record.file_type,
            text_content=record.text_content,
            summary=record.summary,
            summary_error=record.summary_error,
            questions=list(record.questions),
            questions_error=record.questions_error,
        )
        if record.created_at is not None:
            row.created_at = record.created_at

        with session_scope(self._sessions) as session:
            session.add(row)
            session.flush()
            record.id = row.id
            record.created_at = row.created_at

        logger.info(
            "Saved note",
            extra={"note_id": record.id, "upload_filename": record.filename},
        )
        return record.id

    def list_all(self) -> List[NoteRecord]:
        stmt = select(NoteRow).order_by(NoteRow.created_at.desc(), NoteRow.id.desc())
        with session_scope(self._sessions) as session:
            rows = session.execute(stmt).scalars().all()
            return [_to_record(row) for row in rows]


def _to_record(row: NoteRow) -> NoteRecord:
    return NoteRecord(
        id=row.id,
        filename=row.filename,
        file_type=row.file_type,
        text_content=row.text_content,
        summary=row.summary,
        summary_error=row.summary_error,
        questions=list(row.questions or []),
        questions_error=row.questions_error,
        created_at=row.created_at,
    )
