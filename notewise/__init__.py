"""
Notewise: summaries and quiz questions for uploaded course documents.

Subpackages:
- enrichment: provider adapters, retry, normalization and orchestration
- extraction: PDF/DOCX text extraction
- storage, db: saved notes
- api: FastAPI application
"""

__version__ = "1.0.0"
