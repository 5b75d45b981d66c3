"""PDF reading functionality using pdfplumber."""

import io
import logging
from typing import List, Tuple

import pdfplumber

logger = logging.getLogger(__name__)

# Text handed to the metadata analyzer is cut to this many characters
TEXT_SAMPLE_LIMIT = 2000


class DocumentDecodeError(Exception):
    """Raised when document bytes do not parse as a valid PDF."""
    pass


def open_pdf(pdf_bytes: bytes) -> pdfplumber.PDF:
    """Open PDF bytes with pdfplumber.

    Args:
        pdf_bytes: Raw PDF payload

    Returns:
        Open pdfplumber PDF (caller closes it)

    Raises:
        DocumentDecodeError: If bytes are empty or not a parseable PDF
    """
    if not pdf_bytes:
        raise DocumentDecodeError("Document payload is empty")
    try:
        pdf = pdfplumber.open(io.BytesIO(pdf_bytes))
        # Page tree is parsed lazily; touch it so corrupt files fail here
        len(pdf.pages)
        return pdf
    except Exception as e:
        raise DocumentDecodeError(f"Failed to read PDF: {e}") from e


def _normalize_box(raw) -> Tuple[float, float, float, float]:
    x0, y0, x1, y1 = (float(v) for v in raw)
    return min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)


def page_frame(page) -> Tuple[float, float, float, float]:
    """Visible area of a pdfplumber page as (dx, dy, width, height).

    pdfplumber measures words against the MediaBox, while pypdf and PyMuPDF
    draw and render the CropBox. A MediaBox point (x, y), y measured up from
    the MediaBox bottom, is (x - dx, y - dy) in the CropBox frame.
    """
    media = _normalize_box(page.page_obj.mediabox)
    crop = _normalize_box(page.page_obj.cropbox)
    return crop[0] - media[0], crop[1] - media[1], crop[2] - crop[0], crop[3] - crop[1]


def page_rotation(page) -> int:
    """/Rotate of a pdfplumber page as 0, 90, 180 or 270."""
    return int(page.page_obj.rotate) % 360


def read_page_sizes(pdf_bytes: bytes) -> List[Tuple[float, float]]:
    """Read (width, height) in points of every page's CropBox.

    Raises:
        DocumentDecodeError: If the PDF cannot be read
    """
    with open_pdf(pdf_bytes) as pdf:
        return [page_frame(p)[2:] for p in pdf.pages]


def read_page_count(pdf_bytes: bytes) -> int:
    """Number of pages in the PDF.

    Raises:
        DocumentDecodeError: If the PDF cannot be read
    """
    return len(read_page_sizes(pdf_bytes))


def extract_text_from_first_page(pdf_bytes: bytes) -> str:
    """Extract plain text of page 1 for metadata analysis.

    Returns:
        Words of the first page joined by spaces; empty string if the PDF has
        no pages or extraction fails (the analyzer then applies its defaults)
    """
    try:
        with open_pdf(pdf_bytes) as pdf:
            if not pdf.pages:
                return ""
            words = pdf.pages[0].extract_words(x_tolerance=3, y_tolerance=3, use_text_flow=True)
            return " ".join(w.get("text", "") for w in words).strip()
    except Exception as e:
        logger.warning("Text extraction failed: %s", e)
        return ""
