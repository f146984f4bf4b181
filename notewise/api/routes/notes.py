"""Upload and listing endpoints for notes."""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from notewise.api.schemas import NoteResponse
from notewise.enrichment.errors import ExtractionError
from notewise.extraction import DocumentKind
from notewise.notes import NoteService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_note_service(request: Request) -> NoteService:
    service = getattr(request.app.state, "note_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Note service is not ready")
    return service


async def _summarize_upload(
    kind: DocumentKind,
    file: Optional[UploadFile],
    service: NoteService,
) -> NoteResponse:
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="No file uploaded")

    filename = file.filename or f"upload.{kind.value}"
    try:
        outcome = await service.process_upload(
            data,
            filename=filename,
            kind=kind,
            content_type=file.content_type,
        )
    except ExtractionError as e:
        logger.warning(
            "Rejected upload",
            extra={"upload_filename": filename, "error": e.reason},
        )
        raise HTTPException(status_code=400, detail=e.reason)
    except Exception:
        logger.error("Failed to process upload", extra={"upload_filename": filename}, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process file")

    return NoteResponse.from_outcome(outcome)


@router.post("/summarize/pdf", response_model=NoteResponse)
async def summarize_pdf(
    file: Optional[UploadFile] = File(None),
    service: NoteService = Depends(get_note_service),
) -> NoteResponse:
    """Summarize an uploaded PDF and generate quiz questions."""
    return await _summarize_upload(DocumentKind.PDF, file, service)


@router.post("/summarize/docx", response_model=NoteResponse)
async def summarize_docx(
    file: Optional[UploadFile] = File(None),
    service: NoteService = Depends(get_note_service),
) -> NoteResponse:
    """Summarize an uploaded DOCX and generate quiz questions."""
    return await _summarize_upload(DocumentKind.DOCX, file, service)


@router.get("/notes", response_model=List[NoteResponse])
def list_notes(service: NoteService = Depends(get_note_service)) -> List[NoteResponse]:
    """All saved notes, newest first."""
    try:
        records = service.list_notes()
    except Exception:
        logger.error("Fetching notes failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch notes")
    return [NoteResponse.from_record(r) for r in records]
