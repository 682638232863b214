"""
Tracking interfaces.

A tracker continues previously detected regions into a new frame. Each
stored observation becomes one request; results are delivered to a
completion callback on the tracker's own thread, never returned inline.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence
from uuid import UUID

import numpy as np

from models.observation import Observation


class TrackingError(RuntimeError):
    """Raised when a single tracking request cannot be fulfilled."""


@dataclass(frozen=True)
class TrackingResult:
    """
    Outcome of one tracking request.

    Attributes:
        request_uuid: Identifier of the observation the request was built from.
        observations: Updated observations (empty if the region was not found).
        error: Set when the request failed; observations is then empty.
    """
    request_uuid: UUID
    observations: List[Observation] = field(default_factory=list)
    error: Optional[Exception] = None


TrackingCompletion = Callable[[TrackingResult], None]


class ObjectTracker:
    """Tracker interface."""

    def start(self, image: np.ndarray, observations: Sequence[Observation]) -> Future:
        """
        Begin following freshly detected observations from the frame they were found in.

        The future resolves to the identifiers actually being followed; regions
        the tracker cannot follow are left out.
        """
        raise NotImplementedError

    def track(
        self,
        image: np.ndarray,
        observations: Sequence[Observation],
        completion: TrackingCompletion,
        timestamp: Optional[float] = None,
    ) -> List[Future]:
        """Issue one request per observation; completion is called once per request."""
        raise NotImplementedError

    def clear(self) -> Future:
        """Forget every followed region."""
        raise NotImplementedError

    def close(self) -> None:
        pass
