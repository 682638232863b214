"""
Rectangle detection using edge contours.

Candidates are convex quadrilaterals whose corners are close to right
angles. Confidence is the rectangularity of the quad: its area over the
area of its minimum enclosing rotated rectangle.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

import cv2
import numpy as np

from models.config import RectangleDetectionConfig
from models.geometry import NormalizedRect
from models.observation import Observation
from .base import Detector, DetectionError

# Boxes overlapping more than this are the same rectangle (e.g. both sides of an edge).
DUPLICATE_IOU = 0.8


def _box_iou(a: Tuple[int, int, int, int], b: Tuple[int, int, int, int]) -> float:
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    x1 = max(ax, bx)
    y1 = max(ay, by)
    x2 = min(ax + aw, bx + bw)
    y2 = min(ay + ah, by + bh)
    if x2 <= x1 or y2 <= y1:
        return 0.0
    intersection = (x2 - x1) * (y2 - y1)
    union = aw * ah + bw * bh - intersection
    return intersection / union if union > 0 else 0.0


def _corner_angles(quad: np.ndarray) -> List[float]:
    """Interior angles (degrees) of a 4-point polygon."""
    pts = quad.reshape(-1, 2).astype(float)
    angles = []
    for i in range(4):
        prev_pt = pts[i - 1]
        pt = pts[i]
        next_pt = pts[(i + 1) % 4]
        v1 = prev_pt - pt
        v2 = next_pt - pt
        norm = np.linalg.norm(v1) * np.linalg.norm(v2)
        if norm == 0:
            return []
        cos_angle = float(np.clip(np.dot(v1, v2) / norm, -1.0, 1.0))
        angles.append(math.degrees(math.acos(cos_angle)))
    return angles


class RectangleDetector(Detector):
    """Detect rectangular regions (documents, screens, signs) in a frame."""

    def __init__(self, config: Optional[RectangleDetectionConfig] = None):
        self.config = config or RectangleDetectionConfig()
        logging.info(
            f"Rectangle detector initialized (max_observations={self.config.max_observations}, "
            f"min_size={self.config.min_size})"
        )

    def detect(self, image: np.ndarray, timestamp: Optional[float] = None) -> List[Observation]:
        if image is None or image.size == 0:
            return []

        try:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
            blurred = cv2.GaussianBlur(gray, (5, 5), 0)
            edges = cv2.Canny(blurred, self.config.canny_low, self.config.canny_high)
            edges = cv2.dilate(edges, np.ones((3, 3), np.uint8))
            contours, _ = cv2.findContours(edges, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)
        except cv2.error as e:
            raise DetectionError(f"Rectangle detection failed: {e}") from e

        frame_h, frame_w = gray.shape[:2]
        min_side = self.config.min_size * min(frame_w, frame_h)

        candidates: List[Tuple[float, Tuple[int, int, int, int]]] = []
        for contour in contours:
            peri = cv2.arcLength(contour, True)
            if peri < 4 * min_side * 0.5:
                continue
            approx = cv2.approxPolyDP(contour, 0.02 * peri, True)
            if len(approx) != 4 or not cv2.isContourConvex(approx):
                continue

            angles = _corner_angles(approx)
            if not angles or any(abs(a - 90.0) > self.config.quadrature_tolerance for a in angles):
                continue

            (_, _), (rw, rh), _ = cv2.minAreaRect(approx)
            short_side, long_side = min(rw, rh), max(rw, rh)
            if long_side <= 0 or short_side < min_side:
                continue
            aspect = short_side / long_side
            if aspect < self.config.min_aspect_ratio or aspect > self.config.max_aspect_ratio:
                continue

            confidence = min(1.0, float(cv2.contourArea(approx)) / (rw * rh))
            candidates.append((confidence, cv2.boundingRect(approx)))

        candidates.sort(key=lambda c: c[0], reverse=True)

        kept: List[Tuple[float, Tuple[int, int, int, int]]] = []
        for confidence, box in candidates:
            if any(_box_iou(box, other) > DUPLICATE_IOU for _, other in kept):
                continue
            kept.append((confidence, box))
            if len(kept) >= self.config.max_observations:
                break

        return [
            Observation.detected(
                confidence=confidence,
                bounding_box=NormalizedRect.from_pixels(x, y, w, h, frame_w, frame_h).clamped(),
                timestamp=timestamp,
            )
            for confidence, (x, y, w, h) in kept
        ]
