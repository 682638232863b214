"""
Detect-then-track control loop.

Two states, driven by the observation store:
- Detecting (store empty): run one-shot detection for the current mode and
  seed the store with confident results.
- Tracking (store not empty): issue one tracking request per stored
  observation; every confident result refreshes the store and moves (or
  creates) its overlay circle.

Reset and mode switch empty the store so the next frame detects again.

Threading: frames, the store and the mode belong to the sample queue; the
overlay view and the mode label belong to the main queue. Tracking
completions arrive on the tracker's thread and are re-dispatched. Every
update for the main queue is posted from the sample queue, so a view reset
is always ordered after the updates that preceded it.
"""

from __future__ import annotations

import logging
from concurrent.futures import wait
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from detection import Detector, DetectionError, create_detector
from models.frame import FrameData
from models.mode import DetectionMode
from models.observation import Observation, ObservationArea
from overlay.geometry import PreviewGeometry
from overlay.layers_view import LayersView
from tracking.base import ObjectTracker, TrackingResult
from tracking.store import ObservationStore
from .dispatch import DispatchQueue, MainQueue

DEFAULT_CONFIDENCE_THRESHOLD = 0.3


@dataclass
class ControllerStats:
    frames_processed: int = 0
    detection_runs: int = 0
    detections_accepted: int = 0
    detection_failures: int = 0
    tracking_updates: int = 0
    tracking_failures: int = 0


class VisionTrackerController:
    """
    Wires frames to detection/tracking and results to the overlay.

    Example:
        controller = VisionTrackerController(tracker, LayersView(), sample_queue, main_queue)
        sample_queue.submit(controller.handle_frame, frame_data)
        ...
        main_queue.drain()  # on the preview thread
    """

    def __init__(
        self,
        tracker: ObjectTracker,
        layers_view: LayersView,
        sample_queue: DispatchQueue,
        main_queue: MainQueue,
        detector_factory: Callable[[DetectionMode], Detector] = create_detector,
        mode: DetectionMode = DetectionMode.FACES,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        view_size: Optional[Tuple[int, int]] = None,
    ):
        self.tracker = tracker
        self.layers_view = layers_view
        self.sample_queue = sample_queue
        self.main_queue = main_queue
        self.confidence_threshold = confidence_threshold
        self.view_size = view_size
        self.store = ObservationStore()
        self.stats = ControllerStats()

        self._detector_factory = detector_factory
        self._detectors: Dict[DetectionMode, Detector] = {}
        self._mode = mode
        self.mode_label = str(mode)

    @property
    def mode(self) -> DetectionMode:
        return self._mode

    @property
    def state(self) -> str:
        return "detecting" if self.store.is_empty() else "tracking"

    # Controls (any thread)

    def reset(self) -> None:
        """Clear the store and the overlay; the next frame detects again."""
        self.sample_queue.submit(self._reset_state)

    def switch_detection_mode(self) -> None:
        """Toggle rectangles/faces; implies reset."""
        self.sample_queue.submit(self._switch_mode)

    # Sample queue

    def handle_frame(self, frame_data: FrameData) -> None:
        self.stats.frames_processed += 1
        if self.store.is_empty():
            self.detect_objects(frame_data)
            return
        self.track_objects(frame_data)

    def detect_objects(self, frame_data: FrameData) -> None:
        mode = self._mode
        self.stats.detection_runs += 1
        try:
            detector = self._detector_for(mode)
            observations = detector.detect(frame_data.image, timestamp=frame_data.timestamp)
        except DetectionError as e:
            self.stats.detection_failures += 1
            logging.warning(f"Detection failed (mode={mode}): {e}")
            return

        logging.debug(f"mode: {mode}, number of detected observations: {len(observations)}")

        accepted = self.store.seed(observations, self.confidence_threshold)
        if not accepted:
            return

        # Regions the tracker cannot follow must not hold the store in tracking
        primed = set(self.tracker.start(frame_data.image, accepted).result())
        for observation in accepted:
            if observation.uuid not in primed:
                self.store.discard(observation.uuid)
                logging.debug(f"Region {observation.uuid} cannot be tracked, dropped")
        if not primed:
            return

        self.stats.detections_accepted += len(primed)
        logging.info(f"Tracking {len(primed)} region(s) (mode={mode}, frame={frame_data.frame_index})")

    def track_objects(self, frame_data: FrameData) -> None:
        frame_size = frame_data.size

        def completion(result: TrackingResult) -> None:
            self._handle_tracking_completion(result, frame_size)

        futures = self.tracker.track(
            frame_data.image,
            self.store.snapshot(),
            completion,
            timestamp=frame_data.timestamp,
        )
        wait(futures)

    def _handle_tracking_completion(self, result: TrackingResult, frame_size: Tuple[int, int]) -> None:
        # Runs on the tracker's thread
        if result.error is not None:
            self.sample_queue.submit(self._record_tracking_failure)
            logging.warning(f"Tracking request {result.request_uuid} failed: {result.error}")
            return
        if not result.observations:
            logging.info(f"Observation {result.request_uuid} could not be found")
            return

        self.sample_queue.submit(self._apply_tracked, result.observations[0], frame_size)

    def _apply_tracked(self, observation: Observation, frame_size: Tuple[int, int]) -> None:
        if not self.store.refresh(observation, self.confidence_threshold):
            return
        self.stats.tracking_updates += 1
        self.main_queue.submit(self._update_layers, observation, frame_size)

    def _record_tracking_failure(self) -> None:
        self.stats.tracking_failures += 1

    def _reset_state(self) -> None:
        self.store.clear()
        self.tracker.clear()
        self.main_queue.submit(self.layers_view.reset)
        logging.info("Tracking reset")

    def _switch_mode(self) -> None:
        self._mode = self._mode.toggled()
        self._reset_state()
        self.main_queue.submit(self._set_mode_label, str(self._mode))
        logging.info(f"Detection mode switched to {self._mode}")

    def _detector_for(self, mode: DetectionMode) -> Detector:
        detector = self._detectors.get(mode)
        if detector is None:
            detector = self._detector_factory(mode)
            self._detectors[mode] = detector
        return detector

    # Main queue

    def _update_layers(self, observation: Observation, frame_size: Tuple[int, int]) -> None:
        geometry = PreviewGeometry(frame_size=frame_size, view_size=self.view_size or frame_size)
        area = ObservationArea(uuid=observation.uuid, bounds=geometry.layer_rect(observation.bounding_box))
        self.layers_view.update([area])

    def _set_mode_label(self, label: str) -> None:
        self.mode_label = label
