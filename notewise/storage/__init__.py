"""Note storage for Notewise."""

from .note_store import NoteRecord, NoteStore, SQLNoteStore

__all__ = ["NoteRecord", "NoteStore", "SQLNoteStore"]
