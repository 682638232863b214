"""
Overlay layer: circles drawn over the preview that follow tracked regions.
"""

from .geometry import PreviewGeometry
from .layers_view import LayersView, ReconcilePlan, TrackedShape
from .shapes import CircleShape, MoveAnimation, random_color

__all__ = [
    "PreviewGeometry",
    "LayersView",
    "ReconcilePlan",
    "TrackedShape",
    "CircleShape",
    "MoveAnimation",
    "random_color",
]
