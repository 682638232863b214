"""
Tracking module: the observation store and region trackers.
"""

from .base import ObjectTracker, TrackingCompletion, TrackingError, TrackingResult
from .store import ObservationStore
from .template_tracker import TemplateTracker

__all__ = [
    "ObjectTracker",
    "TrackingCompletion",
    "TrackingError",
    "TrackingResult",
    "ObservationStore",
    "TemplateTracker",
]
