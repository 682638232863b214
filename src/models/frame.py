"""
Captured frame passed from the source to the controller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class FrameData:
    """
    An oriented BGR image and when/where it was captured.

    Width and height are read off the image, so they always describe the
    pixels the detectors and trackers actually see.
    """
    image: np.ndarray
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None
    orientation: int = 0

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)
