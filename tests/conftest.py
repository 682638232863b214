"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import uuid

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.geometry import NormalizedRect, Rect  # noqa: E402
from models.observation import Observation, ObservationArea  # noqa: E402


class FakeClock:
    """Manually advanced clock for animation tests."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def make_observation(confidence=0.5, box=(0.0, 0.0, 0.2, 0.2), uid=None):
    """Observation with a fixed or fresh identifier."""
    return Observation(
        uuid=uid or uuid.uuid4(),
        confidence=confidence,
        bounding_box=NormalizedRect(*box),
    )


def make_area(uid, x, y, w, h):
    return ObservationArea(uuid=uid, bounds=Rect(x=x, y=y, width=w, height=h))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]
  fps: 30

detection:
  mode: "faces"
  confidence_threshold: 0.3

tracking:
  level: "accurate"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "detection": {
            "mode": "rectangles",
            "confidence_threshold": 0.3,
            "rectangles": {"max_observations": 5},
            "faces": {"scale_factor": 1.1, "min_neighbors": 5},
        },
        "tracking": {
            "level": "accurate",
            "search_margin": 0.5,
        },
        "overlay": {
            "fill_alpha": 0.5,
            "move_duration": 0.3,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
