"""
Fake implementations for testing.

This package contains fake (test double) implementations of core interfaces,
following the "fakes over mocks" philosophy. Fakes are simplified working
implementations that behave like real components but avoid external dependencies.

Key fakes:
- ScriptedSummaryProvider / ScriptedQuestionProvider: replay a list of outcomes
- SlowProvider: never answers before a test's deadline
- InMemoryNoteStore: note storage without a database
- mock_client: httpx.AsyncClient answered by an in-process handler

Philosophy:
- Fakes implement the same interface as real components
- Fakes use simplified logic but real data structures
- Tests using fakes are fast, deterministic, and maintainable
"""

from tests.fakes.http import RequestLog, mock_client, respond_sequence
from tests.fakes.note_store import InMemoryNoteStore
from tests.fakes.providers import (
    ScriptedQuestionProvider,
    ScriptedSummaryProvider,
    SlowProvider,
    RecordingSleep,
    questions_payload,
    summary_payload,
)

__all__ = [
    "RequestLog",
    "mock_client",
    "respond_sequence",
    "InMemoryNoteStore",
    "ScriptedQuestionProvider",
    "ScriptedSummaryProvider",
    "SlowProvider",
    "RecordingSleep",
    "questions_payload",
    "summary_payload",
]
