"""Text extraction for uploaded documents."""

from .extractor import DocumentKind, detect_kind, extract_text

__all__ = ["DocumentKind", "detect_kind", "extract_text"]
