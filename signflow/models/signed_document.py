"""Document record data model: the persisted unit of a signing workflow."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .mark import decode_mark_payload, encode_mark_data_url
from .placement import NormalizedRect, Placement

DEFAULT_TITLE = "Untitled Document"


class DocumentStatus(str, Enum):
    """Signing status, derived from placements."""
    UNSIGNED = "unsigned"
    SIGNED = "signed"


def status_for(placements: Iterable[Placement]) -> DocumentStatus:
    """Derive status: SIGNED iff every placement carries a mark (vacuously true)."""
    if all(p.mark is not None for p in placements):
        return DocumentStatus.SIGNED
    return DocumentStatus.UNSIGNED


@dataclass
class DocumentMetadata:
    """Descriptive metadata produced by the analysis collaborator.

    Attributes:
        title: Short document title
        summary: One-sentence summary
        tags: Up to a handful of labels
    """

    title: str = DEFAULT_TITLE
    summary: str = ""
    tags: List[str] = field(default_factory=list)


@dataclass
class DocumentRecord:
    """A document under signature.

    Attributes:
        id: Document identifier (store key)
        filename: Uploaded filename
        page_count: Page count recorded at scan time
        original_pdf: Original PDF bytes (never modified)
        placements: Placements in detection order
        title: Display title
        summary: One-sentence summary
        tags: Labels
        uploaded_at: Upload timestamp (UTC)
        signed_pdf: Output of the latest embedding run, None before the first
    """

    id: str
    filename: str
    page_count: int
    original_pdf: bytes
    placements: Tuple[Placement, ...] = ()
    title: str = DEFAULT_TITLE
    summary: str = ""
    tags: List[str] = field(default_factory=list)
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    signed_pdf: Optional[bytes] = None

    def __post_init__(self):
        """Validate placements reference existing pages and ids are unique."""
        self.placements = tuple(self.placements)
        if self.page_count < 0:
            raise ValueError(f"page_count must be >= 0, got {self.page_count}")
        seen = set()
        for p in self.placements:
            if p.page_index >= self.page_count:
                raise ValueError(
                    f"Placement {p.id} references page {p.page_index}, "
                    f"document has {self.page_count} pages"
                )
            if p.id in seen:
                raise ValueError(f"Duplicate placement id: {p.id}")
            seen.add(p.id)

    @property
    def status(self) -> DocumentStatus:
        return status_for(self.placements)

    @property
    def signed_count(self) -> int:
        return sum(1 for p in self.placements if p.mark is not None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary (bytes base64-encoded)."""
        return {
            "id": self.id,
            "title": self.title,
            "filename": self.filename,
            "uploaded_at": self.uploaded_at.isoformat(),
            "status": self.status.value,
            "tags": list(self.tags),
            "summary": self.summary,
            "page_count": self.page_count,
            "original_pdf": base64.b64encode(self.original_pdf).decode("ascii"),
            "signed_pdf": (
                base64.b64encode(self.signed_pdf).decode("ascii")
                if self.signed_pdf is not None else None
            ),
            "placements": [
                {
                    "id": p.id,
                    "page_index": p.page_index,
                    "position": p.position.to_dict(),
                    "mark": encode_mark_data_url(p.mark) if p.mark is not None else None,
                }
                for p in self.placements
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DocumentRecord:
        """Create from dictionary (e.g. from the JSON store).

        The stored status is ignored; it is recomputed from placements.
        """
        placements = tuple(
            Placement(
                id=item["id"],
                page_index=int(item["page_index"]),
                position=NormalizedRect.from_dict(item["position"]),
                mark=decode_mark_payload(item["mark"]) if item.get("mark") else None,
            )
            for item in data.get("placements") or []
        )
        signed = data.get("signed_pdf")
        return cls(
            id=data["id"],
            filename=data.get("filename", ""),
            page_count=int(data["page_count"]),
            original_pdf=base64.b64decode(data["original_pdf"]),
            placements=placements,
            title=data.get("title") or DEFAULT_TITLE,
            summary=data.get("summary", ""),
            tags=list(data.get("tags") or []),
            uploaded_at=datetime.fromisoformat(data["uploaded_at"]),
            signed_pdf=base64.b64decode(signed) if signed else None,
        )
