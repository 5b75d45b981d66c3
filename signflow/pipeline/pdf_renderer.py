"""PDF page rendering to raster views, with optional placement overlay."""

import io
from pathlib import Path
from typing import Iterable, Optional

try:
    import fitz  # pymupdf
except ImportError:
    fitz = None

from PIL import Image, ImageDraw

from ..models.mark import load_mark_image
from ..models.placement import Placement
from .geometry import scale_to_fit, to_view_rect

# Box outline colours for the overlay preview
UNSIGNED_OUTLINE = (37, 99, 235)
SIGNED_OUTLINE = (34, 197, 94)


class PDFRenderError(Exception):
    """Raised when PDF rendering fails."""
    pass


def render_page(pdf_bytes: bytes, page_index: int, scale: float = 1.5) -> Image.Image:
    """Render one page to an RGB image.

    A scale of 1.0 maps one page unit (point) to one pixel.

    Args:
        pdf_bytes: PDF payload
        page_index: Zero-based page number
        scale: Render scale

    Returns:
        Pillow image of the page

    Raises:
        PDFRenderError: If rendering fails (corrupt document, page out of range)
        ImportError: If pymupdf (fitz) is not installed
    """
    if fitz is None:
        raise ImportError(
            "pymupdf (fitz) is required for PDF rendering. "
            "Install with: pip install pymupdf"
        )
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")

    try:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as pdf_doc:
            if not 0 <= page_index < pdf_doc.page_count:
                raise PDFRenderError(
                    f"Page index {page_index} out of range (document has {pdf_doc.page_count} pages)"
                )
            pix = pdf_doc[page_index].get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
            return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
    except PDFRenderError:
        raise
    except Exception as e:
        raise PDFRenderError(f"Failed to render page {page_index + 1}: {e}") from e


def draw_placement_overlay(image: Image.Image, placements: Iterable[Placement], page_index: int) -> Image.Image:
    """Draw placement boxes (and attached marks) for one page onto a rendered view.

    Boxes are mapped from normalized space to the view's pixel space, so the
    preview is correct at any render scale.
    """
    view = image.convert("RGB")
    draw = ImageDraw.Draw(view)
    for placement in placements:
        if placement.page_index != page_index:
            continue
        rect = to_view_rect(placement.position, view.width, view.height)
        box = (rect.left, rect.top, rect.left + rect.width, rect.top + rect.height)
        if placement.mark is not None:
            mark = load_mark_image(placement.mark)
            fit_w, fit_h = scale_to_fit(mark.width, mark.height, rect.width, rect.height)
            size = (max(1, round(fit_w)), max(1, round(fit_h)))
            resized = mark.resize(size, Image.Resampling.LANCZOS)
            view.paste(resized, (round(rect.left), round(rect.top)), resized)
            draw.rectangle(box, outline=SIGNED_OUTLINE, width=2)
        else:
            draw.rectangle(box, outline=UNSIGNED_OUTLINE, width=2)
    return view


def render_page_to_image(
    pdf_bytes: bytes,
    page_index: int,
    output_path: str,
    scale: float = 1.5,
    placements: Optional[Iterable[Placement]] = None,
) -> str:
    """Render a page to a PNG file, optionally with placement boxes.

    Returns:
        Path to saved image file

    Raises:
        PDFRenderError: If rendering fails
    """
    image = render_page(pdf_bytes, page_index, scale)
    if placements is not None:
        image = draw_placement_overlay(image, placements, page_index)
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format="PNG")
    return str(path)


def render_page_png(pdf_bytes: bytes, page_index: int, scale: float = 1.5,
                    placements: Optional[Iterable[Placement]] = None) -> bytes:
    """Render a page to PNG bytes (for API responses)."""
    image = render_page(pdf_bytes, page_index, scale)
    if placements is not None:
        image = draw_placement_overlay(image, placements, page_index)
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
