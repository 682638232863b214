"""
Observation models produced by detection and tracking.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional
from uuid import UUID, uuid4

from .geometry import NormalizedRect, Rect


@dataclass(frozen=True)
class Observation:
    """
    A confidence-scored region tied to a stable identifier.

    Attributes:
        uuid: Identifier assigned by the detector; kept by the tracker
              for the same physical region across frames.
        confidence: Score in [0, 1].
        bounding_box: Region normalized to the capture frame.
        timestamp: Capture timestamp of the frame it was produced from.
    """
    uuid: UUID
    confidence: float
    bounding_box: NormalizedRect
    timestamp: Optional[float] = None

    @classmethod
    def detected(
        cls,
        confidence: float,
        bounding_box: NormalizedRect,
        timestamp: Optional[float] = None,
    ) -> "Observation":
        """Create an observation for a newly detected region with a fresh identifier."""
        return cls(uuid=uuid4(), confidence=confidence, bounding_box=bounding_box, timestamp=timestamp)

    def tracked(
        self,
        confidence: float,
        bounding_box: NormalizedRect,
        timestamp: Optional[float] = None,
    ) -> "Observation":
        """Continuation of this observation into a later frame (same identifier)."""
        return replace(self, confidence=confidence, bounding_box=bounding_box, timestamp=timestamp)


@dataclass(frozen=True)
class ObservationArea:
    """An observation's bounding box converted to view coordinates."""
    uuid: UUID
    bounds: Rect
