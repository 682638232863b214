"""
Tests for overlay shapes, move animation and preview geometry.
"""

import colorsys
import random

import numpy as np
import pytest

from models.geometry import NormalizedRect
from overlay.geometry import PreviewGeometry
from overlay.shapes import CircleShape, MoveAnimation, random_color


class TestRandomColor:
    def test_saturation_and_brightness_at_least_half(self):
        rng = random.Random(1)
        for _ in range(200):
            b, g, r = random_color(rng)
            _, s, v = colorsys.rgb_to_hsv(r / 255, g / 255, b / 255)
            assert s >= 0.49
            assert v >= 0.49

    def test_seeded_rng_is_reproducible(self):
        assert random_color(random.Random(3)) == random_color(random.Random(3))


class TestMoveAnimation:
    def test_progress_is_clamped(self):
        anim = MoveAnimation((0.0, 0.0), (10.0, 0.0), duration=1.0, start_time=5.0)
        assert anim.progress(4.0) == 0.0
        assert anim.progress(5.5) == pytest.approx(0.5)
        assert anim.progress(9.0) == 1.0

    def test_zero_duration_finishes_immediately(self):
        anim = MoveAnimation((0.0, 0.0), (10.0, 4.0), duration=0.0, start_time=5.0)
        assert anim.is_finished(5.0)
        assert anim.position_at(5.0) == (10.0, 4.0)

    def test_displacement(self):
        anim = MoveAnimation((1.0, 2.0), (4.0, 6.0), duration=0.3, start_time=0.0)
        assert anim.displacement == (3.0, 4.0)


class TestCircleShape:
    def test_move_commits_position(self):
        shape = CircleShape(radius=5, position=(0.0, 0.0), fill_color=(0, 0, 255))
        shape.move((10.0, 10.0), duration=1.0, now=0.0)

        assert shape.position == (10.0, 10.0)
        assert shape.presentation_position(0.5) == pytest.approx((5.0, 5.0))

    def test_retarget_starts_from_committed_position(self):
        """A move issued mid-animation starts from the last committed position."""
        shape = CircleShape(radius=5, position=(0.0, 0.0), fill_color=(0, 0, 255))
        shape.move((10.0, 0.0), duration=1.0, now=0.0)
        shape.move((20.0, 0.0), duration=1.0, now=0.5)

        assert shape.animation.from_position == (10.0, 0.0)
        assert shape.presentation_position(1.0) == pytest.approx((15.0, 0.0))

    def test_finished_animation_is_dropped(self):
        shape = CircleShape(radius=5, position=(0.0, 0.0), fill_color=(0, 0, 255))
        shape.move((10.0, 0.0), duration=0.3, now=0.0)

        assert shape.presentation_position(2.0) == (10.0, 0.0)
        assert shape.animation is None


class TestPreviewGeometry:
    def test_same_size_is_identity(self):
        geom = PreviewGeometry(frame_size=(640, 480), view_size=(640, 480))
        rect = geom.layer_rect(NormalizedRect(0.25, 0.5, 0.5, 0.25))

        assert rect.x == pytest.approx(160)
        assert rect.y == pytest.approx(240)
        assert rect.width == pytest.approx(320)
        assert rect.height == pytest.approx(120)

    def test_wide_view_adds_side_bars(self):
        """A 4:3 frame in a 16:9 view is centered with bars left and right."""
        geom = PreviewGeometry(frame_size=(640, 480), view_size=(1280, 720))
        content = geom.content_rect

        assert geom.scale == pytest.approx(1.5)
        assert content.x == pytest.approx(160)
        assert content.y == pytest.approx(0)
        assert content.width == pytest.approx(960)

        rect = geom.layer_rect(NormalizedRect(0.0, 0.0, 1.0, 1.0))
        assert rect.x == pytest.approx(160)
        assert rect.max_x == pytest.approx(1120)

    def test_tall_view_adds_top_bars(self):
        geom = PreviewGeometry(frame_size=(640, 480), view_size=(640, 640))
        content = geom.content_rect

        assert content.y == pytest.approx(80)
        assert content.height == pytest.approx(480)

    def test_fit_frame_letterboxes(self):
        geom = PreviewGeometry(frame_size=(40, 30), view_size=(80, 40))
        image = np.full((30, 40, 3), 200, dtype=np.uint8)

        fitted = geom.fit_frame(image)

        assert fitted.shape == (40, 80, 3)
        # Content is 53x40 centered; the outer columns are bars
        assert fitted[20, 0].sum() == 0
        assert fitted[20, 79].sum() == 0
        assert (fitted[20, 40] == 200).all()

    def test_fit_frame_same_size_copies(self):
        geom = PreviewGeometry(frame_size=(40, 30), view_size=(40, 30))
        image = np.full((30, 40, 3), 9, dtype=np.uint8)

        fitted = geom.fit_frame(image)

        assert fitted is not image
        assert (fitted == image).all()
