"""Pydantic models for API responses."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from notewise.models import Question
from notewise.notes import NoteOutcome
from notewise.storage import NoteRecord


class NoteResponse(BaseModel):
    """A saved note with its summary and questions."""

    id: int
    filename: str
    file_type: Optional[str] = None
    summary: Optional[str] = None
    summary_error: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    questions_error: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: NoteRecord) -> "NoteResponse":
        return cls(
            id=record.id,
            filename=record.filename,
            file_type=record.file_type,
            summary=record.summary,
            summary_error=record.summary_error,
            questions=[Question.model_validate(q) for q in record.questions],
            questions_error=record.questions_error,
            created_at=record.created_at,
        )

    @classmethod
    def from_outcome(cls, outcome: NoteOutcome) -> "NoteResponse":
        return cls.from_record(outcome.record)


class HealthResponse(BaseModel):
    status: str
    version: str
    services: Dict[str, str] = Field(default_factory=dict)
