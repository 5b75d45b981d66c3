"""Data models for documents, placements and marks."""

from .placement import NormalizedRect, Placement
from .signed_document import DocumentMetadata, DocumentRecord, DocumentStatus, status_for
from .text_fragment import TextFragment

__all__ = [
    "NormalizedRect",
    "Placement",
    "DocumentMetadata",
    "DocumentRecord",
    "DocumentStatus",
    "status_for",
    "TextFragment",
]
