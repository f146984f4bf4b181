"""NoteService - one upload from bytes to a saved note."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from notewise.enrichment.config import EnrichmentConfig
from notewise.enrichment.service import enrich
from notewise.extraction import DocumentKind, extract_text
from notewise.models import EnrichmentRequest, EnrichmentResult
from notewise.storage import NoteRecord, NoteStore

logger = logging.getLogger(__name__)

Extractor = Callable[[bytes, DocumentKind], str]
Enricher = Callable[[EnrichmentRequest, EnrichmentConfig], Awaitable[EnrichmentResult]]


@dataclass
class NoteOutcome:
    """What one processed upload produced."""

    note_id: int
    record: NoteRecord
    result: EnrichmentResult


class NoteService:
    """Chains text extraction, enrichment and persistence.

    Extraction errors propagate to the caller; enrichment failures are stored
    in the note as per-field error reasons.
    """

    def __init__(
        self,
        store: NoteStore,
        config: EnrichmentConfig,
        *,
        extractor: Extractor = extract_text,
        enricher: Optional[Enricher] = None,
    ):
        """Initialize note service.

        Args:
            store: Where processed notes are saved
            config: Enrichment configuration passed to every run
            extractor: Bytes-to-text function
            enricher: Enrichment coroutine, ``enrich`` by default
        """
        self.store = store
        self.config = config
        self.extractor = extractor
        self.enricher: Enricher = enricher or enrich

    async def process_upload(
        self,
        data: bytes,
        *,
        filename: str,
        kind: DocumentKind,
        content_type: Optional[str] = None,
    ) -> NoteOutcome:
        """Extract, enrich and save one uploaded file.

        Raises:
            ExtractionError: The file could not be turned into text
        """
        logger.info("Processing upload", extra={"upload_filename": filename, "kind": kind.value})
        text = await asyncio.to_thread(self.extractor, data, kind)

        request = EnrichmentRequest(text=text, max_input_length=self.config.max_input_length)
        result = await self.enricher(request, self.config)

        record = NoteRecord.from_result(
            filename=filename,
            file_type=content_type or kind.content_type,
            text_content=text,
            result=result,
        )
        note_id = await asyncio.to_thread(self.store.insert, record)

        if not result.ok:
            logger.warning(
                "Saved note with partial enrichment",
                extra={
                    "note_id": note_id,
                    "summary_ok": result.summary_ok,
                    "questions_ok": result.questions_ok,
                },
            )
        return NoteOutcome(note_id=note_id, record=record, result=result)

    def list_notes(self) -> list[NoteRecord]:
        return self.store.list_all()
