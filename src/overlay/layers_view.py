"""
Layers view: overlay circles that follow tracked regions.

update() reconciles the drawn shapes against a batch of observation areas
with minimal churn:
- identifiers not drawn yet get a new circle (radius = half the area's
  width, centered on the area, random translucent fill)
- identifiers already drawn have their circle animated linearly to the
  new center; the new position is committed immediately
- drawn identifiers missing from the batch are left alone, so circles of
  lost regions stay where they were until reset()

The view is owned by the main queue; it is not thread-safe.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Set, Tuple
from uuid import UUID

import cv2
import numpy as np

from models.observation import ObservationArea
from .shapes import CircleShape, random_color


@dataclass
class TrackedShape:
    """A drawn shape and the area it currently represents."""
    shape: CircleShape
    area: ObservationArea


@dataclass(frozen=True)
class ReconcilePlan:
    """Areas to draw as new shapes and areas whose shapes move, in batch order."""
    to_add: List[ObservationArea] = field(default_factory=list)
    to_move: List[ObservationArea] = field(default_factory=list)

    @property
    def add_uuids(self) -> Set[UUID]:
        return {area.uuid for area in self.to_add}

    @property
    def move_uuids(self) -> Set[UUID]:
        return {area.uuid for area in self.to_move}


class LayersView:
    def __init__(
        self,
        fill_alpha: float = 0.5,
        move_duration: float = 0.3,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        self.fill_alpha = fill_alpha
        self.move_duration = move_duration
        self._clock = clock
        self._rng = rng or random.Random()
        self._tracked_shapes: List[TrackedShape] = []

    @property
    def tracked_shapes(self) -> Tuple[TrackedShape, ...]:
        return tuple(self._tracked_shapes)

    @property
    def drawn_uuids(self) -> Set[UUID]:
        return {tracked.area.uuid for tracked in self._tracked_shapes}

    def shape_for(self, uuid: UUID) -> Optional[CircleShape]:
        tracked = self._find(uuid)
        return tracked.shape if tracked is not None else None

    def plan(self, areas: Sequence[ObservationArea]) -> ReconcilePlan:
        """Split a batch into new and already-drawn areas without touching the view."""
        drawn = self.drawn_uuids
        seen: Set[UUID] = set()
        to_add: List[ObservationArea] = []
        to_move: List[ObservationArea] = []
        for area in areas:
            if area.uuid in seen:
                continue
            seen.add(area.uuid)
            if area.uuid in drawn:
                to_move.append(area)
            else:
                to_add.append(area)
        return ReconcilePlan(to_add=to_add, to_move=to_move)

    def update(self, areas: Sequence[ObservationArea]) -> ReconcilePlan:
        plan = self.plan(areas)
        for area in plan.to_add:
            self._draw_circle(area)
        now = self._clock()
        for area in plan.to_move:
            self._move_circle(area, now)
        return plan

    def reset(self) -> None:
        """Remove every shape."""
        if self._tracked_shapes:
            logging.debug(f"Removing {len(self._tracked_shapes)} overlay shapes")
        self._tracked_shapes.clear()

    def render(self, image: np.ndarray, now: Optional[float] = None) -> np.ndarray:
        """Blend every shape onto the image in place at its presentation position."""
        now = self._clock() if now is None else now
        for tracked in self._tracked_shapes:
            shape = tracked.shape
            cx, cy = shape.presentation_position(now)
            layer = image.copy()
            cv2.circle(
                layer,
                (int(round(cx)), int(round(cy))),
                max(1, int(round(shape.radius))),
                shape.fill_color,
                thickness=-1,
                lineType=cv2.LINE_AA,
            )
            cv2.addWeighted(layer, shape.alpha, image, 1.0 - shape.alpha, 0, dst=image)
        return image

    def _find(self, uuid: UUID) -> Optional[TrackedShape]:
        for tracked in self._tracked_shapes:
            if tracked.area.uuid == uuid:
                return tracked
        return None

    def _draw_circle(self, area: ObservationArea) -> None:
        bounds = area.bounds
        radius = (bounds.max_x - bounds.min_x) / 2.0
        shape = CircleShape(
            radius=radius,
            position=bounds.center,
            fill_color=random_color(self._rng),
            alpha=self.fill_alpha,
        )
        self._tracked_shapes.append(TrackedShape(shape=shape, area=area))

    def _move_circle(self, area: ObservationArea, now: float) -> None:
        tracked = self._find(area.uuid)
        if tracked is None:
            return
        tracked.shape.move(area.bounds.center, self.move_duration, now)
        tracked.area = area
