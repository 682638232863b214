"""
Pipeline module for the vision tracker.

The pipeline orchestrates the full processing flow:
- Frame acquisition from capture sources
- Detection or tracking on the dedicated sample queue
- Overlay reconciliation and rendering on the main queue
"""

from .controller import VisionTrackerController, ControllerStats
from .dispatch import DispatchQueue, MainQueue
from .engine import PipelineEngine, PipelineConfig, create_engine_from_config

__all__ = [
    "VisionTrackerController",
    "ControllerStats",
    "DispatchQueue",
    "MainQueue",
    "PipelineEngine",
    "PipelineConfig",
    "create_engine_from_config",
]
