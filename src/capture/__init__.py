"""
Capture layer: camera feeds delivered as oriented FrameData.
"""

from .base import FrameSource
from .opencv_source import OpenCVSource, OpenCVSourceConfig, create_source_from_config

__all__ = [
    "FrameSource",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
]
