"""
Detection interfaces.

A detector performs a one-shot search over a whole frame and returns every
region it finds as an Observation with a fresh identifier. Backends:
- rectangles (contour / quadrilateral analysis)
- faces (Haar cascade)
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from models.observation import Observation


class DetectionError(RuntimeError):
    """Raised when a detector cannot process a frame."""


class Detector:
    """Detector interface returning observations in normalized coordinates."""

    def detect(self, image: np.ndarray, timestamp: Optional[float] = None) -> List[Observation]:
        raise NotImplementedError
