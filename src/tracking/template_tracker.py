"""
Template-matching object tracker.

Each followed region keeps a grayscale template cut from the frame it was
last seen in. A tracking request searches a window around the previous box
in the new frame with normalized cross-correlation; the best score is the
tracked observation's confidence.

All template state lives on a single worker thread, so requests, priming
and clearing are applied in submission order.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence
from uuid import UUID

import cv2
import numpy as np

from models.config import TrackingConfig
from models.geometry import NormalizedRect
from models.observation import Observation
from .base import ObjectTracker, TrackingCompletion, TrackingError, TrackingResult

# Downscale factor per tracking level
LEVEL_SCALES = {
    "accurate": 1.0,
    "fast": 0.5,
}


class TemplateTracker(ObjectTracker):
    def __init__(self, config: Optional[TrackingConfig] = None):
        self.config = config or TrackingConfig()
        if self.config.level not in LEVEL_SCALES:
            raise ValueError(f"Unknown tracking level: {self.config.level}")
        self._scale = LEVEL_SCALES[self.config.level]
        self._templates: Dict[UUID, np.ndarray] = {}
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tracking")
        logging.info(f"Template tracker initialized (level={self.config.level})")

    def _prepare(self, image: np.ndarray) -> np.ndarray:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
        if self._scale != 1.0:
            gray = cv2.resize(gray, None, fx=self._scale, fy=self._scale, interpolation=cv2.INTER_AREA)
        return gray

    def start(self, image: np.ndarray, observations: Sequence[Observation]) -> Future:
        gray = self._prepare(image)
        return self._executor.submit(self._add_templates, gray, list(observations))

    def track(
        self,
        image: np.ndarray,
        observations: Sequence[Observation],
        completion: TrackingCompletion,
        timestamp: Optional[float] = None,
    ) -> List[Future]:
        gray = self._prepare(image)
        return [
            self._executor.submit(self._perform_request, gray, observation, completion, timestamp)
            for observation in observations
        ]

    def clear(self) -> Future:
        return self._executor.submit(self._templates.clear)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    @property
    def template_count(self) -> int:
        return len(self._templates)

    def _add_templates(self, gray: np.ndarray, observations: List[Observation]) -> List[UUID]:
        """Cut a template per observation; returns the identifiers now followed."""
        frame_h, frame_w = gray.shape[:2]
        primed = []
        for observation in observations:
            x, y, w, h = self._pixel_box(observation.bounding_box, frame_w, frame_h)
            if w < self.config.min_template_size or h < self.config.min_template_size:
                logging.debug(f"Region {observation.uuid} too small to track ({w}x{h})")
                continue
            self._templates[observation.uuid] = gray[y:y + h, x:x + w].copy()
            primed.append(observation.uuid)
        return primed

    def _perform_request(
        self,
        gray: np.ndarray,
        observation: Observation,
        completion: TrackingCompletion,
        timestamp: Optional[float],
    ) -> TrackingResult:
        try:
            tracked = self._track_one(gray, observation, timestamp)
            result = TrackingResult(request_uuid=observation.uuid, observations=[tracked])
        except TrackingError as e:
            result = TrackingResult(request_uuid=observation.uuid, error=e)
        except cv2.error as e:
            result = TrackingResult(request_uuid=observation.uuid, error=TrackingError(str(e)))

        try:
            completion(result)
        except Exception as e:
            logging.warning(f"Tracking completion error: {e}")
        return result

    def _track_one(self, gray: np.ndarray, observation: Observation, timestamp: Optional[float]) -> Observation:
        template = self._templates.get(observation.uuid)
        if template is None:
            raise TrackingError(f"No template for region {observation.uuid}")

        frame_h, frame_w = gray.shape[:2]
        tpl_h, tpl_w = template.shape[:2]
        x, y, _, _ = self._pixel_box(observation.bounding_box, frame_w, frame_h)
        margin_x = int(tpl_w * self.config.search_margin) + 1
        margin_y = int(tpl_h * self.config.search_margin) + 1

        x1 = max(0, x - margin_x)
        y1 = max(0, y - margin_y)
        x2 = min(frame_w, x + tpl_w + margin_x)
        y2 = min(frame_h, y + tpl_h + margin_y)
        search = gray[y1:y2, x1:x2]
        if search.shape[0] < tpl_h or search.shape[1] < tpl_w:
            raise TrackingError(f"Region {observation.uuid} left the frame")

        res = cv2.matchTemplate(search, template, cv2.TM_CCOEFF_NORMED)
        _, max_val, _, max_loc = cv2.minMaxLoc(res)
        confidence = float(np.clip(max_val, 0.0, 1.0)) if np.isfinite(max_val) else 0.0

        new_x = x1 + max_loc[0]
        new_y = y1 + max_loc[1]
        if confidence >= self.config.template_update_threshold:
            self._templates[observation.uuid] = gray[new_y:new_y + tpl_h, new_x:new_x + tpl_w].copy()

        box = NormalizedRect.from_pixels(new_x, new_y, tpl_w, tpl_h, frame_w, frame_h).clamped()
        return observation.tracked(confidence=confidence, bounding_box=box, timestamp=timestamp)

    @staticmethod
    def _pixel_box(box: NormalizedRect, frame_w: int, frame_h: int):
        """Integer (x, y, w, h) of a normalized box, clipped to the frame."""
        rect = box.clamped().to_pixels(frame_w, frame_h)
        x = int(round(rect.x))
        y = int(round(rect.y))
        w = min(int(round(rect.width)), frame_w - x)
        h = min(int(round(rect.height)), frame_h - y)
        return x, y, w, h
