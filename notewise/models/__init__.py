"""
Canonical Pydantic models for Notewise.

These are the provider-agnostic shapes produced by the enrichment pipeline and
returned to the API layer.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

from notewise.status import ErrorKind


# ==================== Request ====================

class EnrichmentRequest(BaseModel):
    """Extracted text handed to the pipeline."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    max_input_length: int = Field(
        default=100_000,
        gt=0,
        description="Text beyond this many characters is never sent to a provider",
    )

    @field_validator("text")
    @classmethod
    def _reject_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must contain non-whitespace characters")
        return v

    def clipped_text(self) -> str:
        """Return the text limited to ``max_input_length`` characters."""
        return self.text[: self.max_input_length]


# ==================== Summary ====================

class Summary(BaseModel):
    """Normalized summary."""

    body: str = Field(min_length=1)
    word_target: Optional[int] = None


# ==================== Questions ====================

class QuestionKind(str, Enum):
    SHORT_ANSWER = "short-answer"
    MULTIPLE_CHOICE = "multiple-choice"


class Question(BaseModel):
    """Normalized quiz question."""

    kind: QuestionKind
    prompt: str = Field(min_length=1)
    answer: Optional[str] = None
    choices: Optional[List[str]] = None


class QuestionSet(RootModel[List[Question]]):
    """Ordered questions from one provider response."""

    root: List[Question] = Field(default_factory=list)

    def __iter__(self) -> Iterator[Question]:  # type: ignore[override]
        return iter(self.root)

    def __getitem__(self, index: int) -> Question:
        return self.root[index]

    def __len__(self) -> int:
        return len(self.root)


# ==================== Result ====================

class ErrorMarker(BaseModel):
    """Failure of one enrichment path, safe to show to end users."""

    kind: ErrorKind
    reason: str
    provider: Optional[str] = None

    @classmethod
    def from_exception(cls, exc: Exception) -> "ErrorMarker":
        """Build a marker from a pipeline error.

        Only errors from the pipeline's own taxonomy keep their message;
        anything else gets a generic reason so internals never leak.
        """
        from notewise.enrichment.errors import EnrichmentError

        if isinstance(exc, EnrichmentError):
            return cls(kind=exc.error_kind, reason=exc.reason, provider=exc.provider)
        return cls(kind=ErrorKind.UNEXPECTED, reason="Unexpected error during enrichment")


class EnrichmentResult(BaseModel):
    """Summary and questions for one request; either side may be an ErrorMarker."""

    summary: Union[Summary, ErrorMarker]
    questions: Union[QuestionSet, ErrorMarker]

    @property
    def summary_ok(self) -> bool:
        return isinstance(self.summary, Summary)

    @property
    def questions_ok(self) -> bool:
        return isinstance(self.questions, QuestionSet)

    @property
    def ok(self) -> bool:
        return self.summary_ok and self.questions_ok


__all__ = [
    "EnrichmentRequest",
    "Summary",
    "QuestionKind",
    "Question",
    "QuestionSet",
    "ErrorMarker",
    "EnrichmentResult",
]
