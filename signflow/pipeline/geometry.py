"""Coordinate transforms between page-content, normalized and rendered-pixel space.

Three coordinate systems are in play:

- page-content space: PDF units (points), origin bottom-left, y upward
- normalized space: fractions of page width/height, origin top-left, y downward
- view space: pixels of a page rendered at some scale, origin top-left

Every conversion lives here so scanner, embedder and any overlay agree on
semantics. All functions are pure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..models.placement import NormalizedRect


@dataclass(frozen=True)
class PageRect:
    """Rectangle in page-content space (bottom-left origin, page units)."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class PixelRect:
    """Rectangle in a rendered view (top-left origin, pixels)."""
    left: float
    top: float
    width: float
    height: float


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


def to_normalized_x(page_content_x: float, page_width: float) -> float:
    """Map a page-content x coordinate to normalized x."""
    _require_positive("page_width", page_width)
    return page_content_x / page_width


def to_normalized_top_left(page_content_y: float, glyph_height: float, page_height: float) -> float:
    """Map the bottom of a glyph box in page-content space to the normalized top edge.

    Args:
        page_content_y: Bottom of the glyph bounding box, measured upward from the page bottom
        glyph_height: Visual height of the glyph box
        page_height: Page height in page units

    Returns:
        Normalized y of the box's top edge, measured downward from the page top
    """
    _require_positive("page_height", page_height)
    return (page_height - page_content_y - glyph_height) / page_height


def from_normalized_to_page_rect(
    rect: NormalizedRect,
    page_width: float,
    page_height: float,
    mark_width: Optional[float] = None,
    mark_height: Optional[float] = None,
) -> PageRect:
    """Inverse transform: normalized top-left rectangle to page-content space.

    The bottom-left y is re-derived from the top edge using the height of
    what is actually drawn. When mark dimensions are omitted the nominal
    box size is used.
    """
    _require_positive("page_width", page_width)
    _require_positive("page_height", page_height)
    width = rect.width * page_width if mark_width is None else mark_width
    height = rect.height * page_height if mark_height is None else mark_height
    return PageRect(
        x=rect.x * page_width,
        y=page_height - (rect.y * page_height) - height,
        width=width,
        height=height,
    )


def scale_to_fit(
    image_width: float,
    image_height: float,
    max_width: float,
    max_height: float,
) -> Tuple[float, float]:
    """Scale image dimensions to fit a box, preserving aspect ratio.

    Scales up as well as down: the result touches the box on at least one side.
    """
    _require_positive("image_width", image_width)
    _require_positive("image_height", image_height)
    scale = min(max_width / image_width, max_height / image_height)
    return image_width * scale, image_height * scale


def place_mark(
    rect: NormalizedRect,
    image_width: float,
    image_height: float,
    page_width: float,
    page_height: float,
) -> PageRect:
    """Final page-space rectangle for a mark drawn into a placement.

    Order matters: scale the image into the placement box first, then
    position it using the scaled height, so the mark's top edge sits on the
    placement's top edge.
    """
    fit_w, fit_h = scale_to_fit(
        image_width,
        image_height,
        rect.width * page_width,
        rect.height * page_height,
    )
    return from_normalized_to_page_rect(
        rect, page_width, page_height, mark_width=fit_w, mark_height=fit_h
    )


def view_size(page_width: float, page_height: float, scale: float) -> Tuple[int, int]:
    """Pixel size of a page rendered at the given scale (1.0 = one pixel per point)."""
    _require_positive("scale", scale)
    return round(page_width * scale), round(page_height * scale)


def to_view_rect(rect: NormalizedRect, view_width: float, view_height: float) -> PixelRect:
    """Map a normalized rectangle onto a rendered view for overlay drawing."""
    _require_positive("view_width", view_width)
    _require_positive("view_height", view_height)
    return PixelRect(
        left=rect.x * view_width,
        top=rect.y * view_height,
        width=rect.width * view_width,
        height=rect.height * view_height,
    )


def view_point_to_normalized(
    px: float, py: float, view_width: float, view_height: float
) -> Tuple[float, float]:
    """Map a pixel in a rendered view back to normalized coordinates."""
    _require_positive("view_width", view_width)
    _require_positive("view_height", view_height)
    return px / view_width, py / view_height
