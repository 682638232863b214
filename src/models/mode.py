"""
Detection mode selector.
"""

from __future__ import annotations

from enum import Enum


class DetectionMode(Enum):
    RECTANGLES = "rectangles"
    FACES = "faces"

    def __str__(self) -> str:
        return self.value

    def toggled(self) -> "DetectionMode":
        """Return the other mode."""
        if self is DetectionMode.RECTANGLES:
            return DetectionMode.FACES
        return DetectionMode.RECTANGLES

    @classmethod
    def parse(cls, value: str) -> "DetectionMode":
        """Parse a config/CLI value such as "faces" (case-insensitive)."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown detection mode {value!r} (expected one of: {valid})") from None
