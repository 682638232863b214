"""
Tests for the pipeline engine frame loop.
"""

import random
from typing import List, Optional
from unittest.mock import MagicMock

import numpy as np
import pytest

from capture.base import FrameSource
from models.frame import FrameData
from overlay.layers_view import LayersView
from pipeline.dispatch import DispatchQueue, MainQueue
from pipeline.engine import PipelineConfig, PipelineEngine, create_engine_from_config
from runtime.context import RuntimeContext


class MockSource(FrameSource):
    """In-memory frame source for testing."""

    def __init__(self, frames: List[np.ndarray], source_id: str = "mock"):
        super().__init__(source_id)
        self._frames = list(frames)
        self.closed = False

    def open(self) -> None:
        self._opened = True

    def read(self) -> Optional[FrameData]:
        if self.frames_read >= len(self._frames):
            return None
        image = self._frames[self.frames_read]
        self.frames_read += 1
        return FrameData(image, timestamp=100.0 + self.frames_read / 30.0,
                         frame_index=self.frames_read, source=self.source_id)

    def close(self) -> None:
        self.closed = True
        self._opened = False


def make_controller(sample_queue=None):
    controller = MagicMock()
    controller.sample_queue = sample_queue or MagicMock(is_idle=True)
    controller.main_queue = MainQueue()
    controller.layers_view = LayersView(rng=random.Random(0))
    controller.mode_label = "faces"
    return controller


def frame(width=64, height=48, index=1):
    image = np.zeros((height, width, 3), dtype=np.uint8)
    return FrameData(image, timestamp=100.0 + index, frame_index=index)


class TestProcessFrame:
    def test_idle_queue_receives_frame(self):
        controller = make_controller()
        engine = PipelineEngine(MockSource([]), controller, PipelineConfig())
        fd = frame()

        engine.process_frame(fd)

        controller.sample_queue.submit.assert_called_once_with(controller.handle_frame, fd)
        assert engine.stats.submitted_frames == 1
        assert engine.stats.dropped_frames == 0

    def test_busy_queue_drops_frame(self):
        """Frames arriving while the sample queue is busy are discarded."""
        controller = make_controller(MagicMock(is_idle=False))
        engine = PipelineEngine(MockSource([]), controller, PipelineConfig())

        engine.process_frame(frame())

        controller.sample_queue.submit.assert_not_called()
        assert engine.stats.dropped_frames == 1

    def test_drains_main_queue_before_render(self):
        controller = make_controller()
        engine = PipelineEngine(MockSource([]), controller, PipelineConfig())
        controller.main_queue.submit(setattr, controller, "mode_label", "rectangles")

        engine.process_frame(frame())

        assert controller.mode_label == "rectangles"
        assert len(controller.main_queue) == 0

    def test_preview_uses_view_size(self):
        controller = make_controller()
        engine = PipelineEngine(MockSource([]), controller, PipelineConfig(view_size=(128, 72)))

        preview = engine.process_frame(frame(64, 48))

        assert preview.shape == (72, 128, 3)
        assert controller.view_size == (128, 72)

    def test_publishes_to_runtime_context(self):
        controller = make_controller()
        web_state = MagicMock()
        ctx = RuntimeContext(web_state=web_state)
        engine = PipelineEngine(MockSource([]), controller, PipelineConfig(), ctx=ctx)

        preview = engine.process_frame(frame())

        web_state.set_frame.assert_called_once_with(preview)
        published = web_state.update_system_stats.call_args[0][0]
        assert published["dropped_frames"] == 0
        assert "last_frame_ts" in published

    def test_fps_estimate(self):
        controller = make_controller()
        engine = PipelineEngine(MockSource([]), controller, PipelineConfig())

        for i in range(5):
            engine.process_frame(FrameData(np.zeros((8, 8, 3), np.uint8), timestamp=i * 0.1))

        assert engine.stats.fps == pytest.approx(10.0)


class TestHandleKey:
    def test_keys(self):
        controller = make_controller()
        engine = PipelineEngine(MockSource([]), controller, PipelineConfig())

        assert engine.handle_key(ord('r')) is True
        controller.reset.assert_called_once()
        assert engine.handle_key(ord('m')) is True
        controller.switch_detection_mode.assert_called_once()
        assert engine.handle_key(ord('x')) is True
        assert engine.handle_key(ord('q')) is False


class TestRun:
    def test_runs_until_source_exhausted(self):
        frames = [np.zeros((48, 64, 3), dtype=np.uint8) for _ in range(3)]
        source = MockSource(frames)
        sample_queue = DispatchQueue("test.sample")
        controller = make_controller(sample_queue)
        engine = PipelineEngine(source, controller, PipelineConfig(max_consecutive_failures=1))
        seen = []
        engine.add_callback(lambda fd, preview: seen.append(fd.frame_index))

        engine.run()

        assert seen == [1, 2, 3]
        assert engine.stats.frame_count == 3
        assert source.closed
        controller.tracker.close.assert_called_once()

    def test_callback_errors_do_not_stop_loop(self):
        source = MockSource([np.zeros((8, 8, 3), dtype=np.uint8) for _ in range(2)])
        controller = make_controller()
        engine = PipelineEngine(source, controller, PipelineConfig(max_consecutive_failures=1))
        engine.add_callback(MagicMock(side_effect=ValueError("boom")))

        engine.run()

        assert engine.stats.frame_count == 2

    def test_open_failure_propagates(self):
        source = MockSource([])
        source.open = MagicMock(side_effect=RuntimeError("no camera"))
        engine = PipelineEngine(source, make_controller(), PipelineConfig())

        with pytest.raises(RuntimeError, match="no camera"):
            engine.run()


class TestCreateEngine:
    def test_reads_display_section(self):
        config = {"display": {"window_name": "Preview", "view_size": [320, 240]}, "stats_log_interval": 5}
        engine = create_engine_from_config(config, MockSource([]), make_controller(), display=True)

        assert engine.config.window_name == "Preview"
        assert engine.config.view_size == (320, 240)
        assert engine.config.stats_log_interval == 5
        assert engine.config.display is True
        assert engine.config.record is False
