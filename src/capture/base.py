"""
Frame source interface.

The frame loop only needs three things from a camera: open it, pull the
next oriented frame, and release it. Orientation is fixed when the source
is built; every frame it returns is already rotated accordingly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from models.frame import FrameData


class FrameSource(ABC):
    def __init__(self, source_id: str, orientation: int = 0):
        self.source_id = source_id
        self.orientation = orientation
        self.frames_read = 0
        self._opened = False

    @property
    def is_open(self) -> bool:
        return self._opened

    @abstractmethod
    def open(self) -> None:
        """Raises RuntimeError when the device cannot be opened."""

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Next frame, or None when none is available."""

    @abstractmethod
    def close(self) -> None:
        """Idempotent."""

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
