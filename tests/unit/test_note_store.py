"""Tests for SQLNoteStore against a SQLite file."""
from datetime import datetime, timedelta, timezone

import pytest

from notewise.db import check_connection, get_engine
from notewise.models import (
    EnrichmentResult,
    ErrorMarker,
    Question,
    QuestionKind,
    QuestionSet,
    Summary,
)
from notewise.status import ErrorKind
from notewise.storage import NoteRecord, SQLNoteStore


@pytest.fixture()
def store(tmp_path) -> SQLNoteStore:
    return SQLNoteStore(get_engine(f"sqlite:///{tmp_path / 'notes.db'}"))


def _result(summary=None, questions=None) -> EnrichmentResult:
    return EnrichmentResult(
        summary=summary or Summary(body="A summary."),
        questions=questions
        or QuestionSet([Question(kind=QuestionKind.MULTIPLE_CHOICE, prompt="Pick", choices=["A", "B"])]),
    )


class TestNoteRecord:
    def test_from_full_result(self):
        record = NoteRecord.from_result(
            filename="bio.pdf", file_type="application/pdf", text_content="text", result=_result()
        )

        assert record.summary == "A summary."
        assert record.summary_error is None
        assert record.questions == [
            {"kind": "multiple-choice", "prompt": "Pick", "answer": None, "choices": ["A", "B"]}
        ]
        assert record.questions_error is None

    def test_from_partial_result(self):
        marker = ErrorMarker(kind=ErrorKind.TIMEOUT, reason="Questions path did not finish")
        record = NoteRecord.from_result(
            filename="bio.pdf", file_type=None, text_content="text", result=_result(questions=marker)
        )

        assert record.summary == "A summary."
        assert record.questions == []
        assert record.questions_error == "Questions path did not finish"


class TestSQLNoteStore:
    def test_insert_assigns_id_and_timestamp(self, store):
        record = NoteRecord(filename="a.pdf", text_content="alpha", summary="S")

        note_id = store.insert(record)

        assert note_id == record.id
        assert record.created_at is not None

    def test_round_trip_keeps_fields(self, store):
        record = NoteRecord.from_result(
            filename="a.docx", file_type="docx", text_content="alpha", result=_result()
        )
        store.insert(record)

        [saved] = store.list_all()

        assert saved.filename == "a.docx"
        assert saved.text_content == "alpha"
        assert saved.summary == "A summary."
        assert saved.questions[0]["choices"] == ["A", "B"]

    def test_list_newest_first(self, store):
        base = datetime(2024, 5, 1, tzinfo=timezone.utc)
        for offset, name in [(1, "middle"), (0, "oldest"), (2, "newest")]:
            store.insert(
                NoteRecord(
                    filename=name, text_content=name, created_at=base + timedelta(minutes=offset)
                )
            )

        assert [r.filename for r in store.list_all()] == ["newest", "middle", "oldest"]

    def test_same_timestamp_falls_back_to_id(self, store):
        moment = datetime(2024, 5, 1, tzinfo=timezone.utc)
        store.insert(NoteRecord(filename="first", text_content="x", created_at=moment))
        store.insert(NoteRecord(filename="second", text_content="x", created_at=moment))

        assert [r.filename for r in store.list_all()] == ["second", "first"]

    def test_empty_store(self, store):
        assert store.list_all() == []

    def test_connection_check(self, store):
        assert check_connection(store.engine)
