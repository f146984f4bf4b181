"""
Tests for the notes API endpoints.

Uses FastAPI TestClient with an injected NoteService backed by fakes, so no
provider or database is touched.
"""

import io

import docx
import pytest
from fastapi.testclient import TestClient

from notewise.api.main import create_app
from notewise.config import Settings
from notewise.enrichment.config import EnrichmentConfig
from notewise.enrichment.errors import ExtractionError
from notewise.models import (
    EnrichmentResult,
    ErrorMarker,
    Question,
    QuestionKind,
    QuestionSet,
    Summary,
)
from notewise.notes import NoteService
from notewise.status import ErrorKind
from tests.fakes import InMemoryNoteStore

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _docx_bytes(text: str) -> bytes:
    document = docx.Document()
    document.add_paragraph(text)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class StubEnricher:
    def __init__(self, result: EnrichmentResult):
        self.result = result
        self.texts = []

    async def __call__(self, request, config):
        self.texts.append(request.text)
        return self.result


FULL = EnrichmentResult(
    summary=Summary(body="Mitochondria make ATP."),
    questions=QuestionSet(
        [
            Question(
                kind=QuestionKind.MULTIPLE_CHOICE,
                prompt="What makes ATP?",
                choices=["Mitochondria", "Ribosome"],
                answer="Mitochondria",
            )
        ]
    ),
)


def _client(result=FULL, extractor=None, store=None):
    enricher = StubEnricher(result)
    kwargs = {"enricher": enricher}
    if extractor is not None:
        kwargs["extractor"] = extractor
    service = NoteService(store or InMemoryNoteStore(), EnrichmentConfig(), **kwargs)
    app = create_app(settings=Settings(), note_service=service)
    return TestClient(app), enricher


class TestSummarizeEndpoints:
    def test_docx_upload_returns_note(self):
        client, enricher = _client()

        response = client.post(
            "/summarize/docx",
            files={"file": ("cells.docx", _docx_bytes("Cells have mitochondria."), DOCX_TYPE)},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == 1
        assert data["filename"] == "cells.docx"
        assert data["summary"] == "Mitochondria make ATP."
        assert data["summary_error"] is None
        assert data["questions"][0]["kind"] == "multiple-choice"
        assert data["questions"][0]["choices"] == ["Mitochondria", "Ribosome"]
        assert enricher.texts == ["Cells have mitochondria."]

    def test_pdf_upload_uses_pdf_extraction(self):
        seen = []

        def extractor(data, kind):
            seen.append(kind.value)
            return "pdf text"

        client, _ = _client(extractor=extractor)

        response = client.post("/summarize/pdf", files={"file": ("a.pdf", b"%PDF-1.4", PDF_TYPE)})

        assert response.status_code == 200
        assert seen == ["pdf"]
        assert response.json()["file_type"] == PDF_TYPE

    def test_partial_result_is_200_with_error_reason(self):
        partial = EnrichmentResult(
            summary=Summary(body="Only the summary."),
            questions=ErrorMarker(
                kind=ErrorKind.MALFORMED_RESPONSE,
                reason="PrepAI did not return valid questions",
                provider="prepai",
            ),
        )
        client, _ = _client(result=partial, extractor=lambda data, kind: "text")

        response = client.post("/summarize/pdf", files={"file": ("a.pdf", b"data", PDF_TYPE)})

        assert response.status_code == 200
        data = response.json()
        assert data["summary"] == "Only the summary."
        assert data["questions"] == []
        assert data["questions_error"] == "PrepAI did not return valid questions"

    def test_missing_file_is_400(self):
        client, enricher = _client()

        response = client.post("/summarize/pdf")

        assert response.status_code == 400
        assert response.json()["detail"] == "No file uploaded"
        assert enricher.texts == []

    def test_empty_file_is_400(self):
        client, _ = _client()

        response = client.post("/summarize/docx", files={"file": ("e.docx", b"", DOCX_TYPE)})

        assert response.status_code == 400

    def test_unreadable_file_is_400_with_reason(self):
        client, enricher = _client()

        response = client.post(
            "/summarize/docx", files={"file": ("bad.docx", b"not a zip", DOCX_TYPE)}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Could not read the DOCX file"
        assert enricher.texts == []

    def test_extraction_error_reason_is_returned(self):
        def extractor(data, kind):
            raise ExtractionError("Extracted text is empty")

        client, _ = _client(extractor=extractor)

        response = client.post("/summarize/pdf", files={"file": ("a.pdf", b"data", PDF_TYPE)})

        assert response.status_code == 400
        assert response.json()["detail"] == "Extracted text is empty"

    def test_storage_failure_is_500(self):
        client, _ = _client(
            extractor=lambda data, kind: "text",
            store=InMemoryNoteStore(fail_on_insert=True),
        )

        response = client.post("/summarize/pdf", files={"file": ("a.pdf", b"data", PDF_TYPE)})

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to process file"


class TestNotesEndpoint:
    def test_lists_newest_first(self):
        client, _ = _client(extractor=lambda data, kind: "text")
        for name in ("first.pdf", "second.pdf"):
            client.post("/summarize/pdf", files={"file": (name, b"data", PDF_TYPE)})

        response = client.get("/notes")

        assert response.status_code == 200
        assert [n["filename"] for n in response.json()] == ["second.pdf", "first.pdf"]

    def test_empty_list(self):
        client, _ = _client()

        response = client.get("/notes")

        assert response.status_code == 200
        assert response.json() == []


class TestHealth:
    def test_health_with_injected_service(self):
        client, _ = _client()

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"]["notes"] == "healthy"

    def test_lifespan_builds_sql_store(self, tmp_path):
        settings = Settings(database_url=f"sqlite:///{tmp_path / 'api.db'}", log_format="text")
        app = create_app(settings=settings)

        with TestClient(app) as client:
            response = client.get("/health")
            notes = client.get("/notes")

        assert response.json()["services"]["database"] == "healthy"
        assert notes.json() == []


@pytest.fixture(autouse=True)
def restore_root_logger():
    import logging

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
