"""Document signing workflow: ingest, attach marks, finalize, export."""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Optional, Tuple, Union

from .ai.metadata import analyze_document_content, unconfigured_metadata
from .config.profile_loader import ProfileConfig
from .models.mark import MarkDecodeError, decode_mark_payload, is_blank_mark, load_mark_image
from .models.signed_document import DocumentRecord
from .pipeline.embedder import embed_marks
from .pipeline.placement_store import PlacementStore, Snapshot
from .pipeline.reader import extract_text_from_first_page, read_page_count
from .pipeline.scanner import scan_pdf

logger = logging.getLogger(__name__)


def ingest_document(
    pdf_bytes: bytes,
    filename: str,
    analyze: bool = True,
    profile: Optional[ProfileConfig] = None,
) -> DocumentRecord:
    """Create a record for an uploaded PDF.

    Args:
        pdf_bytes: Uploaded PDF bytes
        filename: Uploaded filename
        analyze: Run metadata analysis on first-page text
        profile: Scan profile (current profile if None)

    Returns:
        New unsigned DocumentRecord with detected placements

    Raises:
        DocumentDecodeError: If the bytes are not a readable PDF
    """
    page_count = read_page_count(pdf_bytes)

    if analyze:
        text = extract_text_from_first_page(pdf_bytes)
        metadata = analyze_document_content(text)
    else:
        metadata = unconfigured_metadata()

    placements = scan_pdf(pdf_bytes, profile=profile)
    logger.info("Ingested %s: %d page(s), %d placement(s)", filename, page_count, len(placements))

    return DocumentRecord(
        id=uuid.uuid4().hex,
        filename=filename,
        page_count=page_count,
        original_pdf=pdf_bytes,
        placements=placements,
        title=metadata.title,
        summary=metadata.summary,
        tags=list(metadata.tags),
        uploaded_at=datetime.now(timezone.utc),
    )


class SigningSession:
    """Signing state of one open document.

    The session owns the placement store; the record it was opened from is
    not modified until finalize() returns a new one.
    """

    def __init__(self, record: DocumentRecord):
        self.record = record
        self.store = PlacementStore(record.placements)

    @property
    def placements(self) -> Snapshot:
        return self.store.placements

    def attach_mark(self, placement_id: str, mark: Union[bytes, str]) -> Snapshot:
        """Attach a drawn mark to a placement.

        Args:
            placement_id: Target placement id
            mark: PNG/JPEG bytes or a base64 data URL

        Returns:
            New placement snapshot

        Raises:
            MarkDecodeError: If the mark is unreadable or blank
            PlacementNotFoundError: If no placement has that id
        """
        data = decode_mark_payload(mark)
        image = load_mark_image(data)
        if is_blank_mark(image):
            raise MarkDecodeError("Mark is empty; draw a signature first")
        return self.store.attach_mark(placement_id, data)

    def progress(self) -> Tuple[int, int]:
        """(signed, total) placement counts."""
        return self.store.signed_count(), len(self.store)

    def is_complete(self) -> bool:
        return self.store.is_complete()

    def current_record(self) -> DocumentRecord:
        """Record carrying the current placements (signed bytes unchanged)."""
        return replace(self.record, placements=self.store.placements)

    def finalize(self) -> DocumentRecord:
        """Embed all attached marks into the original PDF.

        Returns:
            Updated record with signed bytes and current placements

        Raises:
            DocumentDecodeError: If the original bytes cannot be read
            PageOutOfRangeError: If a placement references a missing page
            MarkDecodeError: If a stored mark cannot be decoded
        """
        signed_pdf = embed_marks(
            self.record.original_pdf,
            self.store.placements,
            expected_page_count=self.record.page_count,
        )
        self.record = replace(self.record, placements=self.store.placements, signed_pdf=signed_pdf)
        signed, total = self.progress()
        logger.info("Finalized %s: %d / %d signatures", self.record.id, signed, total)
        return self.record


def export_bytes(record: DocumentRecord) -> bytes:
    """Bytes offered for download: signed output if present, else the original."""
    if record.signed_pdf is not None:
        return record.signed_pdf
    return record.original_pdf


def export_filename(record: DocumentRecord) -> str:
    """Download filename, e.g. contract.pdf -> contract_signed.pdf."""
    stem = PurePath(record.filename).stem or "document"
    return f"{stem}_signed.pdf"
