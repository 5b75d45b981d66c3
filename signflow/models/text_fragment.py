"""TextFragment data model representing one run of text from a page's text layer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TextFragment:
    """A text unit with spatial information in page-content space.

    Coordinate system:
    - Origin (0, 0) is the bottom-left corner of the page
    - X increases rightward
    - Y increases upward
    - Units are page units (points), not pixels

    Attributes:
        text: The text content
        origin_x: X-coordinate of the left edge
        origin_y: Y-coordinate of the bottom edge
        width: Approximate fragment width (0 when unknown)
        height: Approximate fragment height (0 when unknown)
    """

    text: str
    origin_x: float
    origin_y: float
    width: float = 0.0
    height: float = 0.0

    def __post_init__(self):
        """Validate dimensions are non-negative."""
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Fragment dimensions must be non-negative: "
                f"width={self.width}, height={self.height}"
            )
