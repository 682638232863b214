"""
Overlay shapes and their move animation.

A shape has a model position, which is committed as soon as it is moved,
and a presentation position, which follows the running animation. Only
rendering reads the presentation position.
"""

from __future__ import annotations

import colorsys
import random
from dataclasses import dataclass
from typing import Optional, Tuple

Point = Tuple[float, float]
Color = Tuple[int, int, int]


def random_color(rng: Optional[random.Random] = None) -> Color:
    """
    A random saturated, bright color as a BGR tuple.

    Hue is uniform; saturation and brightness fall in [0.5, 1.0).
    """
    rng = rng or random
    hue = rng.randrange(256) / 256
    saturation = rng.randrange(128) / 256 + 0.5
    brightness = rng.randrange(128) / 256 + 0.5
    r, g, b = colorsys.hsv_to_rgb(hue, saturation, brightness)
    return (int(b * 255), int(g * 255), int(r * 255))


@dataclass(frozen=True)
class MoveAnimation:
    """Linear interpolation of a position over a fixed duration."""
    from_position: Point
    to_position: Point
    duration: float
    start_time: float

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return min(max((now - self.start_time) / self.duration, 0.0), 1.0)

    def position_at(self, now: float) -> Point:
        t = self.progress(now)
        fx, fy = self.from_position
        tx, ty = self.to_position
        return (fx + (tx - fx) * t, fy + (ty - fy) * t)

    def is_finished(self, now: float) -> bool:
        return self.progress(now) >= 1.0

    @property
    def displacement(self) -> Point:
        return (self.to_position[0] - self.from_position[0], self.to_position[1] - self.from_position[1])


class CircleShape:
    """A filled translucent circle."""

    def __init__(self, radius: float, position: Point, fill_color: Color, alpha: float = 0.5):
        self.radius = radius
        self.position = position
        self.fill_color = fill_color
        self.alpha = alpha
        self.animation: Optional[MoveAnimation] = None

    def move(self, to_position: Point, duration: float, now: float) -> MoveAnimation:
        """Commit the new position and animate from the old one; replaces a running move."""
        self.animation = MoveAnimation(
            from_position=self.position,
            to_position=to_position,
            duration=duration,
            start_time=now,
        )
        self.position = to_position
        return self.animation

    def presentation_position(self, now: float) -> Point:
        if self.animation is None:
            return self.position
        if self.animation.is_finished(now):
            self.animation = None
            return self.position
        return self.animation.position_at(now)

    def __repr__(self) -> str:
        return f"CircleShape(radius={self.radius:.1f}, position=({self.position[0]:.1f}, {self.position[1]:.1f}))"
