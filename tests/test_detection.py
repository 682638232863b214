"""
Tests for rectangle and face detectors.
"""

from unittest.mock import patch

import cv2
import numpy as np
import pytest

from detection import DetectionError, FaceDetector, RectangleDetector, create_detector
from detection.rectangles import _box_iou, _corner_angles
from models.config import DetectionConfig, FaceDetectionConfig, RectangleDetectionConfig
from models.mode import DetectionMode


def blank_frame(width=640, height=480):
    return np.zeros((height, width, 3), dtype=np.uint8)


class TestRectangleDetector:
    def test_finds_drawn_rectangle(self):
        """A white rectangle on black is reported once with its normalized box."""
        image = blank_frame()
        cv2.rectangle(image, (200, 150), (440, 330), (255, 255, 255), thickness=-1)

        observations = RectangleDetector().detect(image, timestamp=12.0)

        assert len(observations) == 1
        obs = observations[0]
        assert obs.confidence > 0.9
        assert obs.timestamp == 12.0
        box = obs.bounding_box
        assert box.x == pytest.approx(200 / 640, abs=0.02)
        assert box.y == pytest.approx(150 / 480, abs=0.02)
        assert box.width == pytest.approx(240 / 640, abs=0.03)
        assert box.height == pytest.approx(180 / 480, abs=0.03)

    def test_blank_frame_has_no_rectangles(self):
        assert RectangleDetector().detect(blank_frame()) == []

    def test_small_rectangle_is_ignored(self):
        image = blank_frame()
        cv2.rectangle(image, (10, 10), (40, 40), (255, 255, 255), thickness=-1)

        assert RectangleDetector().detect(image) == []

    def test_elongated_rectangle_is_ignored(self):
        """Aspect ratio below min_aspect_ratio is rejected."""
        image = blank_frame()
        cv2.rectangle(image, (20, 200), (620, 320), (255, 255, 255), thickness=-1)

        assert RectangleDetector().detect(image) == []

    def test_respects_max_observations(self):
        image = blank_frame(1280, 720)
        for i in range(4):
            x = 20 + i * 310
            cv2.rectangle(image, (x, 200), (x + 200, 400), (255, 255, 255), thickness=-1)

        config = RectangleDetectionConfig(max_observations=2, min_size=0.1)
        observations = RectangleDetector(config).detect(image)

        assert len(observations) == 2
        assert observations[0].uuid != observations[1].uuid

    def test_empty_image(self):
        assert RectangleDetector().detect(np.zeros((0, 0, 3), dtype=np.uint8)) == []
        assert RectangleDetector().detect(None) == []

    def test_opencv_error_becomes_detection_error(self):
        with patch("detection.rectangles.cv2.Canny", side_effect=cv2.error("bad")):
            with pytest.raises(DetectionError):
                RectangleDetector().detect(blank_frame())


class TestRectangleHelpers:
    def test_box_iou(self):
        assert _box_iou((0, 0, 10, 10), (0, 0, 10, 10)) == pytest.approx(1.0)
        assert _box_iou((0, 0, 10, 10), (20, 20, 5, 5)) == 0.0
        assert _box_iou((0, 0, 10, 10), (5, 0, 10, 10)) == pytest.approx(50 / 150)

    def test_corner_angles_of_square(self):
        quad = np.array([[[0, 0]], [[10, 0]], [[10, 10]], [[0, 10]]])
        assert _corner_angles(quad) == pytest.approx([90.0, 90.0, 90.0, 90.0])

    def test_corner_angles_degenerate(self):
        quad = np.array([[[0, 0]], [[0, 0]], [[10, 10]], [[0, 10]]])
        assert _corner_angles(quad) == []


class TestFaceDetector:
    def test_blank_frame_has_no_faces(self):
        assert FaceDetector().detect(blank_frame()) == []

    def test_missing_cascade_raises(self, tmp_path):
        config = FaceDetectionConfig(cascade=str(tmp_path / "missing.xml"))
        with pytest.raises(DetectionError):
            FaceDetector(config)

    def test_weights_become_confidences(self):
        detector = FaceDetector()
        rects = np.array([[64, 48, 128, 96]])
        weights = np.array([[0.0]])
        with patch.object(detector, "_classifier") as classifier:
            classifier.detectMultiScale3.return_value = (rects, np.array([[1]]), weights)
            observations = detector.detect(blank_frame(), timestamp=5.0)

        assert len(observations) == 1
        obs = observations[0]
        assert obs.confidence == pytest.approx(0.5)
        assert obs.bounding_box.x == pytest.approx(0.1)
        assert obs.bounding_box.y == pytest.approx(0.1)
        assert obs.bounding_box.width == pytest.approx(0.2)
        assert obs.timestamp == 5.0


class TestCreateDetector:
    def test_mode_selects_backend(self):
        assert isinstance(create_detector(DetectionMode.RECTANGLES), RectangleDetector)
        assert isinstance(create_detector(DetectionMode.FACES, DetectionConfig()), FaceDetector)
