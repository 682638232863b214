"""
Rectangle models for normalized capture space and view space.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Rect:
    """
    An axis-aligned rectangle in view (pixel) coordinates.

    Attributes:
        x: Left edge.
        y: Top edge.
        width: Width in pixels.
        height: Height in pixels.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x, y, width, height) tuple."""
        return (int(self.x), int(self.y), int(self.width), int(self.height))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "Rect":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class NormalizedRect:
    """
    A bounding box normalized to the oriented capture frame.

    All values are fractions of the frame size with a top-left origin,
    so (0, 0, 1, 1) covers the whole frame.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    def clamped(self) -> "NormalizedRect":
        """Return a copy clipped to the unit square."""
        x1 = min(max(self.x, 0.0), 1.0)
        y1 = min(max(self.y, 0.0), 1.0)
        x2 = min(max(self.x + self.width, 0.0), 1.0)
        y2 = min(max(self.y + self.height, 0.0), 1.0)
        return NormalizedRect(x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    def to_pixels(self, frame_width: int, frame_height: int) -> Rect:
        """Scale to pixel coordinates of a frame with the given size."""
        return Rect(
            x=self.x * frame_width,
            y=self.y * frame_height,
            width=self.width * frame_width,
            height=self.height * frame_height,
        )

    @classmethod
    def from_pixels(cls, x: float, y: float, w: float, h: float, frame_width: int, frame_height: int) -> "NormalizedRect":
        """Create from a pixel (x, y, w, h) box inside a frame of the given size."""
        return cls(
            x=x / frame_width,
            y=y / frame_height,
            width=w / frame_width,
            height=h / frame_height,
        )
