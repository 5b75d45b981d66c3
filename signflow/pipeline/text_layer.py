"""Text layer abstraction with a pdfplumber implementation (searchable PDFs)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from ..models.text_fragment import TextFragment
from .reader import open_pdf, page_frame, page_rotation

# extra_attrs can cause edge cases on some PDFs; we try with them first and fall back.
_EXTRA_ATTRS = ["fontname", "size"]


class TextExtractionError(Exception):
    """Raised when a page's text layer cannot be extracted."""
    pass


class RotatedPageError(TextExtractionError):
    """Raised for pages with a /Rotate entry, whose words pdfplumber reports rotated."""
    pass


class TextLayerSource(ABC):
    """Abstract source of page geometry and text fragments.

    Fragments are in page-content space (bottom-left origin, page units) and
    are returned in the order the page's content stream produces them.
    """

    @property
    @abstractmethod
    def page_count(self) -> int:
        """Number of pages."""
        pass

    @abstractmethod
    def page_size(self, page_index: int) -> Tuple[float, float]:
        """(width, height) of a page in page units."""
        pass

    @abstractmethod
    def text_fragments(self, page_index: int) -> List[TextFragment]:
        """Ordered text fragments of a page.

        Raises:
            TextExtractionError: If the page's text layer cannot be read
        """
        pass

    def close(self) -> None:
        """Release underlying resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class StaticTextLayer(TextLayerSource):
    """In-memory text layer built from pre-extracted pages.

    Each page is (width, height, fragments). A page whose fragments are None
    behaves as an extraction failure.
    """

    def __init__(self, pages: Sequence[Tuple[float, float, Optional[Sequence[TextFragment]]]]):
        self._pages = list(pages)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def page_size(self, page_index: int) -> Tuple[float, float]:
        width, height, _ = self._pages[page_index]
        return width, height

    def text_fragments(self, page_index: int) -> List[TextFragment]:
        _, _, fragments = self._pages[page_index]
        if fragments is None:
            raise TextExtractionError(f"No text layer for page {page_index}")
        return list(fragments)


class PdfplumberTextLayer(TextLayerSource):
    """Text layer read from PDF bytes with pdfplumber.

    Words from extract_words are used as fragments. pdfplumber measures y
    from the MediaBox top; fragments are moved into the CropBox frame with a
    bottom-left origin, the frame the embedder draws in. Rotated pages are
    not scanned: pdfplumber reports their words in the rotated display frame.
    """

    def __init__(self, pdf_bytes: bytes):
        """Open the document.

        Raises:
            DocumentDecodeError: If bytes are not a readable PDF
        """
        self._pdf = open_pdf(pdf_bytes)

    @property
    def page_count(self) -> int:
        return len(self._pdf.pages)

    def page_size(self, page_index: int) -> Tuple[float, float]:
        _, _, width, height = page_frame(self._pdf.pages[page_index])
        return width, height

    def text_fragments(self, page_index: int) -> List[TextFragment]:
        page = self._pdf.pages[page_index]
        rotation = page_rotation(page)
        if rotation:
            raise RotatedPageError(
                f"Page {page_index + 1} is rotated {rotation} degrees; rotated pages are not scanned"
            )
        # use_text_flow keeps content-stream order instead of re-sorting by position
        kwargs: dict = {
            "x_tolerance": 3,
            "y_tolerance": 3,
            "use_text_flow": True,
        }
        try:
            try:
                words = page.extract_words(**kwargs, extra_attrs=_EXTRA_ATTRS)
            except Exception:
                words = page.extract_words(**kwargs)
            if not words:
                # some PDFs return empty when extra_attrs is used
                words = page.extract_words(**kwargs)
        except Exception as e:
            raise TextExtractionError(
                f"Failed to extract text from page {page_index + 1}: {e}"
            ) from e

        dx, dy, _, _ = page_frame(page)
        media_height = float(page.height)
        fragments = []
        for word in words:
            text = word.get('text', '')
            if not text.strip():
                continue

            x0 = float(word.get('x0', 0))
            x1 = float(word.get('x1', 0))
            top = float(word.get('top', 0))
            bottom = float(word.get('bottom', 0))

            fragments.append(TextFragment(
                text=text,
                origin_x=x0 - dx,
                origin_y=media_height - bottom - dy,
                width=max(0.0, x1 - x0),
                height=max(0.0, bottom - top),
            ))
        return fragments

    def close(self) -> None:
        self._pdf.close()
