"""Plain-text extraction from uploaded PDF and DOCX files."""
from __future__ import annotations

import io
import logging
from enum import Enum
from typing import Optional

import docx
from pypdf import PdfReader

from notewise.enrichment.errors import ExtractionError

logger = logging.getLogger(__name__)


class DocumentKind(str, Enum):
    PDF = "pdf"
    DOCX = "docx"

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES[self]


_CONTENT_TYPES = {
    DocumentKind.PDF: "application/pdf",
    DocumentKind.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def detect_kind(filename: Optional[str], content_type: Optional[str] = None) -> DocumentKind:
    """Work out the document kind from the upload's name and MIME type.

    Raises:
        ExtractionError: Neither hint names a supported kind
    """
    content_type = (content_type or "").lower()
    name = (filename or "").lower()
    if content_type == "application/pdf" or name.endswith(".pdf"):
        return DocumentKind.PDF
    if "wordprocessingml" in content_type or name.endswith(".docx"):
        return DocumentKind.DOCX
    raise ExtractionError(f"Unsupported file type: {filename or content_type or 'unknown'}")


def extract_text(data: bytes, kind: DocumentKind) -> str:
    """Extract plain text from document bytes.

    Args:
        data: Raw file content
        kind: Document kind

    Returns:
        Extracted text, never blank

    Raises:
        ExtractionError: Empty upload, unreadable file, or no text in it
    """
    if not data:
        raise ExtractionError("Uploaded file is empty")

    kind = DocumentKind(kind)
    try:
        if kind is DocumentKind.PDF:
            text = _extract_pdf(data)
        else:
            text = _extract_docx(data)
    except ExtractionError:
        raise
    except Exception as e:
        logger.warning(
            "Text extraction failed",
            extra={"kind": kind.value, "error": str(e)},
        )
        raise ExtractionError(f"Could not read the {kind.value.upper()} file") from e

    if not text.strip():
        raise ExtractionError("Extracted text is empty")

    logger.info("Extracted document text", extra={"kind": kind.value, "chars": len(text)})
    return text


def _extract_pdf(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n\n".join(pages)


def _extract_docx(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    return "\n".join(para.text for para in document.paragraphs if para.text.strip())
