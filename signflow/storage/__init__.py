"""Persistence of document records."""

from .document_store import DocumentNotFoundError, DocumentStore

__all__ = ["DocumentNotFoundError", "DocumentStore"]
