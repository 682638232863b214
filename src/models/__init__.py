"""
Typed models for the vision tracker application.
"""

from .frame import FrameData
from .geometry import Rect, NormalizedRect
from .observation import Observation, ObservationArea
from .mode import DetectionMode
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    RectangleDetectionConfig,
    FaceDetectionConfig,
    TrackingConfig,
    OverlayConfig,
    DisplayConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Geometry
    "Rect",
    "NormalizedRect",
    # Observations
    "Observation",
    "ObservationArea",
    "DetectionMode",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "RectangleDetectionConfig",
    "FaceDetectionConfig",
    "TrackingConfig",
    "OverlayConfig",
    "DisplayConfig",
    "WebConfig",
]
