"""Mark embedding: draw attached marks onto the original PDF pages."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from io import BytesIO
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from PIL import Image
from pypdf import PdfReader, PdfWriter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..models.mark import load_mark_image
from ..models.placement import Placement
from .geometry import PageRect, place_mark
from .reader import DocumentDecodeError

logger = logging.getLogger(__name__)


class PageCountMismatchError(DocumentDecodeError):
    """Raised when the PDF's page count differs from the one recorded at scan time."""
    pass


class PageOutOfRangeError(Exception):
    """Raised when a placement references a page the document does not have."""
    pass


class PageImageSink(ABC):
    """Abstract document mutation target.

    Coordinates passed to draw_image are page-content space: bottom-left
    origin, page units.
    """

    @property
    @abstractmethod
    def page_count(self) -> int:
        pass

    @abstractmethod
    def page_size(self, page_index: int) -> Tuple[float, float]:
        """(width, height) of a page in page units."""
        pass

    @abstractmethod
    def draw_image(self, page_index: int, image: Image.Image, x: float, y: float,
                   width: float, height: float) -> None:
        pass

    @abstractmethod
    def save(self) -> bytes:
        """Serialize the whole document."""
        pass


class PdfOverlaySink(PageImageSink):
    """Draws images via a reportlab overlay merged onto each touched page.

    Draws are queued per page and rendered on save(); within a page they are
    drawn in queue order, so later images sit on top.
    """

    def __init__(self, pdf_bytes: bytes):
        """Parse the PDF.

        Raises:
            DocumentDecodeError: If bytes are not a readable PDF
        """
        if not pdf_bytes:
            raise DocumentDecodeError("Document payload is empty")
        try:
            self._reader = PdfReader(BytesIO(pdf_bytes))
            self._page_count = len(self._reader.pages)
        except Exception as e:
            raise DocumentDecodeError(f"Failed to read PDF: {e}") from e
        self._draws: Dict[int, List[Tuple[Image.Image, PageRect]]] = defaultdict(list)

    @property
    def page_count(self) -> int:
        return self._page_count

    def page_size(self, page_index: int) -> Tuple[float, float]:
        box = self._reader.pages[page_index].cropbox
        return float(box.width), float(box.height)

    def draw_image(self, page_index: int, image: Image.Image, x: float, y: float,
                   width: float, height: float) -> None:
        self._draws[page_index].append((image, PageRect(x=x, y=y, width=width, height=height)))

    def _make_overlay(self, page_w: float, page_h: float,
                      draws: List[Tuple[Image.Image, PageRect]]) -> bytes:
        """Overlay page (same size as target page) holding the queued images."""
        buf = BytesIO()
        # invariant=1 drops timestamps/ids so equal input gives equal overlay bytes
        c = canvas.Canvas(buf, pagesize=(page_w, page_h), invariant=1)
        for image, rect in draws:
            c.drawImage(ImageReader(image), rect.x, rect.y,
                        width=rect.width, height=rect.height, mask="auto")
        c.showPage()
        c.save()
        return buf.getvalue()

    def save(self) -> bytes:
        writer = PdfWriter()
        for i, page in enumerate(self._reader.pages):
            draws = self._draws.get(i)
            if draws:
                box = page.cropbox
                overlay_pdf = self._make_overlay(float(box.width), float(box.height), draws)
                overlay_page = PdfReader(BytesIO(overlay_pdf)).pages[0]
                # overlay origin is (0, 0); shift onto the page's visible box
                page.merge_translated_page(overlay_page, float(box.left), float(box.bottom))
            writer.add_page(page)
        out = BytesIO()
        writer.write(out)
        return out.getvalue()


SinkFactory = Callable[[bytes], PageImageSink]


def embed_marks(
    original_pdf: bytes,
    placements: Iterable[Placement],
    expected_page_count: Optional[int] = None,
    sink_factory: Optional[SinkFactory] = None,
) -> bytes:
    """Produce new PDF bytes with every attached mark drawn onto its page.

    Always works from the original bytes; never pass previously signed
    output back in.

    Args:
        original_pdf: Original PDF bytes
        placements: Placements in sequence order; unsigned ones are skipped
        expected_page_count: Page count recorded at scan time, checked if given
        sink_factory: Builds the mutation target from bytes (PdfOverlaySink by default)

    Returns:
        Complete PDF bytes

    Raises:
        DocumentDecodeError: If the original bytes are not a readable PDF
        PageCountMismatchError: If the page count differs from expected_page_count
        PageOutOfRangeError: If a signed placement references a missing page
        MarkDecodeError: If a mark is not a readable PNG/JPEG
    """
    factory = sink_factory or PdfOverlaySink
    sink = factory(original_pdf)

    if expected_page_count is not None and sink.page_count != expected_page_count:
        raise PageCountMismatchError(
            f"Document has {sink.page_count} pages, expected {expected_page_count}"
        )

    drawn = 0
    for placement in placements:
        if placement.mark is None:
            continue
        if not 0 <= placement.page_index < sink.page_count:
            raise PageOutOfRangeError(
                f"Placement {placement.id} references page {placement.page_index}, "
                f"document has {sink.page_count} pages"
            )
        image = load_mark_image(placement.mark)
        page_w, page_h = sink.page_size(placement.page_index)
        rect = place_mark(placement.position, image.width, image.height, page_w, page_h)
        sink.draw_image(placement.page_index, image, rect.x, rect.y, rect.width, rect.height)
        drawn += 1

    logger.info("Embedded %d mark(s)", drawn)
    return sink.save()
