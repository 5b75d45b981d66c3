"""Pipeline stages: scan placeholders, hold placements, embed marks."""

from .embedder import embed_marks
from .placement_store import PlacementNotFoundError, PlacementStore
from .scanner import scan_pdf, scan_placements

__all__ = [
    "embed_marks",
    "PlacementNotFoundError",
    "PlacementStore",
    "scan_pdf",
    "scan_placements",
]
