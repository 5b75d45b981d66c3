"""Placement data model representing one detected signature placeholder."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Optional


def new_placement_id() -> str:
    """Generate an opaque placement identifier."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class NormalizedRect:
    """Rectangle in normalized page space.

    Coordinate system:
    - Origin (0, 0) is the top-left corner of the page
    - X increases rightward, Y increases downward
    - All values are fractions of page width (x, width) or height (y, height)

    Attributes:
        x: Left edge
        y: Top edge
        width: Rectangle width
        height: Rectangle height
    """

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        """Validate all fields lie within [0, 1]."""
        for name in ("x", "y", "width", "height"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict) -> NormalizedRect:
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
        )


@dataclass(frozen=True)
class Placement:
    """A detected marker occurrence and its optional attached mark.

    Geometry is fixed at detection time. Attaching a mark produces a new
    Placement via with_mark(); the original object is never mutated.

    Attributes:
        id: Opaque identifier, unique within the owning document
        page_index: Zero-based page number
        position: Normalized top-left-origin rectangle
        mark: Raster image bytes (PNG/JPEG), None while unsigned
    """

    id: str
    page_index: int
    position: NormalizedRect
    mark: Optional[bytes] = None

    def __post_init__(self):
        """Validate page index is non-negative."""
        if self.page_index < 0:
            raise ValueError(f"page_index must be >= 0, got {self.page_index}")
        if not self.id:
            raise ValueError("Placement id must not be empty")

    @property
    def is_signed(self) -> bool:
        return self.mark is not None

    def with_mark(self, mark: Optional[bytes]) -> Placement:
        """Return a copy of this placement carrying the given mark."""
        return replace(self, mark=mark)
