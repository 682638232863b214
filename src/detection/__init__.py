"""
Vision Tracker - Detection Module

One-shot detection of rectangles or faces in a frame.
"""

from __future__ import annotations

from typing import Optional

from models.config import DetectionConfig
from models.mode import DetectionMode
from .base import Detector, DetectionError
from .faces import FaceDetector
from .rectangles import RectangleDetector


def create_detector(mode: DetectionMode, config: Optional[DetectionConfig] = None) -> Detector:
    """Build the detector for a detection mode."""
    config = config or DetectionConfig()
    if mode is DetectionMode.RECTANGLES:
        return RectangleDetector(config.rectangles)
    return FaceDetector(config.faces)


__all__ = [
    "Detector",
    "DetectionError",
    "FaceDetector",
    "RectangleDetector",
    "create_detector",
]
