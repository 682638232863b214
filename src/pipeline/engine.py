"""
Pipeline engine for the vision tracker.

The engine runs on the thread that owns the preview. For every captured
frame it:
- hands the frame to the controller on the sample queue, or drops it when
  the queue is still busy with earlier work (late frames are discarded)
- drains the main queue (overlay updates, mode label)
- renders the overlay onto the fitted preview and publishes it
- handles the display window keys: r = reset, m = switch mode, q = quit
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import cv2
import numpy as np

from capture.base import FrameSource
from models.frame import FrameData
from overlay.geometry import PreviewGeometry
from runtime.context import RuntimeContext
from .controller import VisionTrackerController

# Label colors (BGR)
COLOR_LABEL = (255, 0, 0)
COLOR_HINT = (255, 255, 255)


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        max_consecutive_failures: Max frame read failures before stopping.
        stats_log_interval: Seconds between status log messages.
        display: Show the preview window.
        record: Record the annotated preview.
        output_dir: Directory for recorded videos.
        window_name: Title of the preview window.
        view_size: Preview size (width, height); None = frame size.
    """
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0
    display: bool = False
    record: bool = False
    output_dir: str = "output/video"
    window_name: str = "Vision Tracker"
    view_size: Optional[Tuple[int, int]] = None


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    frame_count: int = 0
    submitted_frames: int = 0
    dropped_frames: int = 0
    fps: float = 0.0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    last_frame_time: Optional[float] = None
    consecutive_failures: int = 0


class PipelineEngine:
    """
    Frame loop connecting a FrameSource to the controller and the preview.

    Example:
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        engine = PipelineEngine(source, controller, PipelineConfig(display=True))
        engine.run()
    """

    def __init__(
        self,
        source: FrameSource,
        controller: VisionTrackerController,
        config: PipelineConfig,
        ctx: Optional[RuntimeContext] = None,
    ):
        self.source = source
        self.controller = controller
        self.config = config
        self.ctx = ctx
        self.stats = PipelineStats()
        self._running = False
        self._video_writer: Optional[cv2.VideoWriter] = None
        self._output_path: Optional[str] = None
        self._callbacks: List[Callable[[FrameData, np.ndarray], None]] = []

    def add_callback(self, callback: Callable[[FrameData, np.ndarray], None]) -> None:
        """
        Add a callback called with (frame_data, annotated_preview) after each frame.
        """
        self._callbacks.append(callback)

    def run(self) -> None:
        """
        Run the frame loop until stopped, quit from the window, or the source is exhausted.

        Raises:
            RuntimeError: If the source cannot be opened.
        """
        self._running = True
        self.stats = PipelineStats()

        self.source.open()
        logging.info(f"Pipeline started: source={self.source.source_id}, mode={self.controller.mode}")

        try:
            while self._running:
                frame_data = self.source.read()

                if frame_data is None:
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    logging.warning(
                        f"Frame read failed ({self.stats.consecutive_failures}/"
                        f"{self.config.max_consecutive_failures})"
                    )
                    time.sleep(0.5)
                    continue

                self.stats.consecutive_failures = 0
                preview = self.process_frame(frame_data)

                for callback in self._callbacks:
                    try:
                        callback(frame_data, preview)
                    except Exception as e:
                        logging.warning(f"Callback error: {e}")

                if self.config.display:
                    if not self._handle_display(preview):
                        break

                self._handle_periodic_tasks()

        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the pipeline to stop after the current frame."""
        self._running = False

    def process_frame(self, frame_data: FrameData) -> np.ndarray:
        """
        Dispatch one frame and return the annotated preview.
        """
        self.stats.frame_count += 1
        self._update_fps(frame_data.timestamp)

        sample_queue = self.controller.sample_queue
        if sample_queue.is_idle:
            sample_queue.submit(self.controller.handle_frame, frame_data)
            self.stats.submitted_frames += 1
        else:
            self.stats.dropped_frames += 1

        self.controller.main_queue.drain()

        preview = self._render(frame_data)

        if self.ctx is not None:
            self.ctx.update_frame(preview, fps=self.stats.fps, dropped_frames=self.stats.dropped_frames)

        if self.config.record:
            self._record(preview)

        return preview

    def view_size_for(self, frame_data: FrameData) -> Tuple[int, int]:
        return tuple(self.config.view_size) if self.config.view_size else frame_data.size

    def _render(self, frame_data: FrameData) -> np.ndarray:
        view_size = self.view_size_for(frame_data)
        self.controller.view_size = view_size
        geometry = PreviewGeometry(frame_size=frame_data.size, view_size=view_size)

        preview = geometry.fit_frame(frame_data.image)
        self.controller.layers_view.render(preview)
        self._draw_labels(preview)
        return preview

    def _draw_labels(self, preview: np.ndarray) -> None:
        font = cv2.FONT_HERSHEY_SIMPLEX
        cv2.putText(preview, self.controller.mode_label, (10, 30), font, 0.8, COLOR_LABEL, 2, cv2.LINE_AA)
        if self.config.display:
            hint = "r: reset  m: switch mode  q: quit"
            cv2.putText(preview, hint, (10, preview.shape[0] - 12), font, 0.5, COLOR_HINT, 1, cv2.LINE_AA)

    def _update_fps(self, timestamp: float) -> None:
        if self.stats.last_frame_time is not None:
            dt = timestamp - self.stats.last_frame_time
            if dt > 0:
                instant = 1.0 / dt
                self.stats.fps = instant if self.stats.fps == 0 else 0.9 * self.stats.fps + 0.1 * instant
        self.stats.last_frame_time = timestamp

    def _handle_display(self, preview: np.ndarray) -> bool:
        """
        Show the preview and handle keys.

        Returns False if user pressed 'q' to quit.
        """
        cv2.imshow(self.config.window_name, preview)
        key = cv2.waitKey(1) & 0xFF
        return self.handle_key(key)

    def handle_key(self, key: int) -> bool:
        if key == ord('q'):
            return False
        if key == ord('r'):
            self.controller.reset()
        elif key == ord('m'):
            self.controller.switch_detection_mode()
        return True

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            c = self.controller.stats
            logging.info(
                f"Pipeline stats: frames={self.stats.frame_count}, dropped={self.stats.dropped_frames}, "
                f"fps={self.stats.fps:.1f}, mode={self.controller.mode}, state={self.controller.state}, "
                f"tracked={len(self.controller.store)}, shapes={len(self.controller.layers_view.tracked_shapes)}, "
                f"tracking_updates={c.tracking_updates}, tracking_failures={c.tracking_failures}"
            )
            self.stats.last_stats_log_time = now

    def _record(self, preview: np.ndarray) -> None:
        if self._video_writer is None:
            if not os.path.exists(self.config.output_dir):
                os.makedirs(self.config.output_dir)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self._output_path = f"{self.config.output_dir}/tracker_{timestamp}.avi"
            height, width = preview.shape[:2]
            fourcc = cv2.VideoWriter_fourcc(*'XVID')
            fps = self.stats.fps if self.stats.fps > 0 else 30
            self._video_writer = cv2.VideoWriter(self._output_path, fourcc, fps, (width, height), True)
            logging.info(f"Video recording started: {self._output_path}")
        self._video_writer.write(preview)

    def _cleanup(self) -> None:
        self._running = False

        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        self.controller.sample_queue.shutdown(wait=True)
        self.controller.tracker.close()
        self.controller.main_queue.drain()

        if self._video_writer is not None:
            self._video_writer.release()
            self._video_writer = None
            logging.info(f"Video saved: {self._output_path}")

        if self.config.display:
            cv2.destroyAllWindows()

        logging.info(
            f"Pipeline stopped (frames={self.stats.frame_count}, dropped={self.stats.dropped_frames})"
        )


def create_engine_from_config(
    config: Dict[str, Any],
    source: FrameSource,
    controller: VisionTrackerController,
    ctx: Optional[RuntimeContext] = None,
    display: bool = False,
    record: bool = False,
) -> PipelineEngine:
    """Build a PipelineEngine from the application config dict."""
    display_cfg = config.get("display", {}) or {}
    view_size = display_cfg.get("view_size")
    pipeline_config = PipelineConfig(
        stats_log_interval=config.get("stats_log_interval", 60.0),
        display=display,
        record=record,
        window_name=display_cfg.get("window_name", "Vision Tracker"),
        view_size=tuple(view_size) if view_size else None,
    )
    return PipelineEngine(source, controller, pipeline_config, ctx=ctx)
