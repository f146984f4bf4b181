"""
Status and error-kind enums for Notewise.

Shared between the enrichment pipeline, the note store and the API layer.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a failed enrichment path."""

    TRANSIENT = "transient"
    RETRY_EXHAUSTED = "retry_exhausted"
    PERMANENT = "permanent"
    MALFORMED_RESPONSE = "malformed_response"
    TIMEOUT = "timeout"
    EXTRACTION = "extraction"
    UNEXPECTED = "unexpected"

    def is_retryable(self) -> bool:
        """Check if retrying the same call could change the outcome."""
        return self is ErrorKind.TRANSIENT


class PayloadShape(str, Enum):
    """Layout of a raw provider response body."""

    DIRECT_FIELD = "direct_field"  # JSON object with the value in a named field
    TAGGED = "tagged"  # free text wrapping the value in <tag>...</tag>
    FENCED_JSON = "fenced_json"  # JSON document inside a ``` fence
    STRUCTURED_ITEMS = "structured_items"  # list of question objects


class EnrichmentPath(str, Enum):
    """The two independent legs of an enrichment run."""

    SUMMARY = "summary"
    QUESTIONS = "questions"
