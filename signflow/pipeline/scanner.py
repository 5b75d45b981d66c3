"""Placeholder scanning: find marker text in the text layer and emit placements."""

from __future__ import annotations

import logging
import statistics
from typing import Iterator, List, Optional, Tuple

from ..config.profile_loader import ProfileConfig
from ..config.profile_manager import get_profile
from ..models.placement import NormalizedRect, Placement, new_placement_id
from ..models.text_fragment import TextFragment
from .geometry import to_normalized_top_left, to_normalized_x
from .text_layer import PdfplumberTextLayer, RotatedPageError, TextLayerSource

logger = logging.getLogger(__name__)


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def _make_placement(
    page_index: int,
    origin_x: float,
    fragment: TextFragment,
    page_width: float,
    page_height: float,
    profile: ProfileConfig,
) -> Placement:
    """Build a placement whose box top-left sits at the marker's top-left.

    The box size is the profile's nominal size, not the glyph size, clamped
    so the box never extends past the page edge.
    """
    glyph_height = fragment.height if fragment.height > 0 else profile.fallback_glyph_height
    x = _clamp(to_normalized_x(origin_x, page_width))
    y = _clamp(to_normalized_top_left(fragment.origin_y, glyph_height, page_height))
    width = min(profile.box_width / page_width, 1.0 - x)
    height = min(profile.box_height / page_height, 1.0 - y)
    return Placement(
        id=new_placement_id(),
        page_index=page_index,
        position=NormalizedRect(x=x, y=y, width=width, height=height),
    )


def _line_tolerance(fragments: List[TextFragment], profile: ProfileConfig) -> float:
    """Baseline tolerance for grouping fragments into one line."""
    if profile.line_tolerance is not None:
        return profile.line_tolerance
    heights = [f.height for f in fragments if f.height > 0]
    if heights:
        return max(2.0, min(0.5 * statistics.median(heights), 15.0))
    return 5.0


def reconstruct_lines(fragments: List[TextFragment], tolerance: float) -> List[List[TextFragment]]:
    """Group fragments into lines, top to bottom, each line sorted left to right.

    Fragments whose bottom edges are within tolerance of the line's first
    fragment belong to the same line.
    """
    if not fragments:
        return []
    # Page-content y grows upward, so top-to-bottom is descending origin_y
    ordered = sorted(fragments, key=lambda f: (-f.origin_y, f.origin_x))
    lines: List[List[TextFragment]] = []
    current: List[TextFragment] = [ordered[0]]
    for frag in ordered[1:]:
        if abs(frag.origin_y - current[0].origin_y) <= tolerance:
            current.append(frag)
        else:
            lines.append(sorted(current, key=lambda f: f.origin_x))
            current = [frag]
    lines.append(sorted(current, key=lambda f: f.origin_x))
    return lines


def _join_line(line: List[TextFragment]) -> Tuple[str, List[Tuple[int, TextFragment]]]:
    """Concatenate a line's fragments.

    A space is inserted when the horizontal gap to the previous fragment
    exceeds a quarter of its height. Returns the text and (start offset,
    fragment) spans.
    """
    parts: List[str] = []
    spans: List[Tuple[int, TextFragment]] = []
    pos = 0
    prev: Optional[TextFragment] = None
    for frag in line:
        if prev is not None and prev.width > 0:
            gap = frag.origin_x - (prev.origin_x + prev.width)
            if gap > 0.25 * max(prev.height, 1.0):
                parts.append(" ")
                pos += 1
        spans.append((pos, frag))
        parts.append(frag.text)
        pos += len(frag.text)
        prev = frag
    return "".join(parts), spans


def _find_markers_in_line(line: List[TextFragment], marker: str) -> Iterator[Tuple[TextFragment, float]]:
    """Yield (fragment, origin_x) for every marker occurrence in a reconstructed line."""
    text, spans = _join_line(line)
    idx = text.find(marker)
    while idx >= 0:
        for start, frag in spans:
            if start <= idx < start + len(frag.text):
                offset = idx - start
                origin_x = frag.origin_x
                if frag.width > 0 and frag.text:
                    origin_x += frag.width * offset / len(frag.text)
                yield frag, origin_x
                break
        idx = text.find(marker, idx + len(marker))


def _scan_page(
    page_index: int,
    fragments: List[TextFragment],
    page_width: float,
    page_height: float,
    profile: ProfileConfig,
) -> List[Placement]:
    placements = []
    if profile.reconstruct_lines:
        tolerance = _line_tolerance(fragments, profile)
        for line in reconstruct_lines(fragments, tolerance):
            for frag, origin_x in _find_markers_in_line(line, profile.marker):
                placements.append(
                    _make_placement(page_index, origin_x, frag, page_width, page_height, profile)
                )
        return placements

    # Only fragments that hold the complete marker are detected; a marker split
    # across fragments is missed in this mode.
    for frag in fragments:
        if profile.marker in frag.text:
            placements.append(
                _make_placement(page_index, frag.origin_x, frag, page_width, page_height, profile)
            )
    return placements


def scan_placements(source: TextLayerSource, profile: Optional[ProfileConfig] = None) -> List[Placement]:
    """Scan every page of a text layer for the marker.

    Args:
        source: Text layer of the document
        profile: Scan configuration (active profile if None)

    Returns:
        Placements ordered by page, then by in-page order (text-stream order,
        or reading order when line reconstruction is enabled)

    Note:
        A page whose text extraction fails contributes no placements; the
        scan continues with the remaining pages. Rotated pages are
        skipped the same way, with a warning.
    """
    active = profile or get_profile()
    placements: List[Placement] = []
    for page_index in range(source.page_count):
        try:
            page_width, page_height = source.page_size(page_index)
            fragments = source.text_fragments(page_index)
        except RotatedPageError as e:
            logger.warning("Skipping page %d: %s", page_index + 1, e)
            continue
        except Exception as e:
            logger.warning("Skipping page %d: text extraction failed: %s", page_index + 1, e)
            continue
        if page_width <= 0 or page_height <= 0:
            logger.warning(
                "Skipping page %d: invalid size %sx%s", page_index + 1, page_width, page_height
            )
            continue
        found = _scan_page(page_index, fragments, page_width, page_height, active)
        if found:
            logger.info("Page %d: %d placeholder(s)", page_index + 1, len(found))
        placements.extend(found)
    return placements


def scan_pdf(pdf_bytes: bytes, profile: Optional[ProfileConfig] = None) -> List[Placement]:
    """Scan PDF bytes for placeholders using the pdfplumber text layer.

    Raises:
        DocumentDecodeError: If bytes are not a readable PDF
    """
    with PdfplumberTextLayer(pdf_bytes) as source:
        return scan_placements(source, profile)
