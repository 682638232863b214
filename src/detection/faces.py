"""
Face detection with an OpenCV Haar cascade.
"""

from __future__ import annotations

import logging
import math
import os
from typing import List, Optional

import cv2
import numpy as np

from models.config import FaceDetectionConfig
from models.geometry import NormalizedRect
from models.observation import Observation
from .base import Detector, DetectionError


def resolve_cascade_path(cascade: str) -> str:
    """Use the path as given if it exists, else look it up in OpenCV's bundled cascades."""
    if os.path.exists(cascade):
        return cascade
    return os.path.join(cv2.data.haarcascades, cascade)


class FaceDetector(Detector):
    """
    Detect frontal faces.

    The cascade's level weight for each hit is squashed through a logistic
    function to give a confidence in [0, 1].
    """

    def __init__(self, config: Optional[FaceDetectionConfig] = None):
        self.config = config or FaceDetectionConfig()
        path = resolve_cascade_path(self.config.cascade)
        self._classifier = cv2.CascadeClassifier(path)
        if self._classifier.empty():
            raise DetectionError(f"Failed to load face cascade: {path}")
        logging.info(f"Face detector initialized (cascade={os.path.basename(path)})")

    def detect(self, image: np.ndarray, timestamp: Optional[float] = None) -> List[Observation]:
        if image is None or image.size == 0:
            return []

        try:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
            gray = cv2.equalizeHist(gray)
            rects, _, weights = self._classifier.detectMultiScale3(
                gray,
                scaleFactor=self.config.scale_factor,
                minNeighbors=self.config.min_neighbors,
                minSize=tuple(self.config.min_size),
                outputRejectLevels=True,
            )
        except cv2.error as e:
            raise DetectionError(f"Face detection failed: {e}") from e

        if rects is None or len(rects) == 0:
            return []

        frame_h, frame_w = gray.shape[:2]
        weights = np.asarray(weights, dtype=float).reshape(-1)
        observations = []
        for i, (x, y, w, h) in enumerate(rects):
            weight = weights[i] if i < len(weights) else 0.0
            confidence = 1.0 / (1.0 + math.exp(-weight))
            observations.append(
                Observation.detected(
                    confidence=confidence,
                    bounding_box=NormalizedRect.from_pixels(x, y, w, h, frame_w, frame_h).clamped(),
                    timestamp=timestamp,
                )
            )
        return observations
