"""
Observation store: the latest accepted observation per identifier.

The store only ever holds observations whose confidence exceeded the
acceptance threshold when they were accepted. Detection seeds it, tracking
refreshes entries in place, and reset / mode switch empty it.

It is not thread-safe; the controller confines it to the sample queue.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from models.observation import Observation


class ObservationStore:
    def __init__(self):
        self._observations: Dict[UUID, Observation] = {}

    def seed(self, observations: Iterable[Observation], threshold: float) -> List[Observation]:
        """
        Insert or overwrite every observation with confidence > threshold.

        Returns:
            The accepted observations, in input order.
        """
        accepted = []
        for observation in observations:
            if observation.confidence > threshold:
                self._observations[observation.uuid] = observation
                accepted.append(observation)
            else:
                logging.debug(
                    f"Dropped observation {observation.uuid} "
                    f"(confidence={observation.confidence:.2f} <= {threshold})"
                )
        return accepted

    def refresh(self, observation: Observation, threshold: float) -> bool:
        """
        Overwrite an existing entry with a fresher observation.

        Unknown identifiers and low-confidence results are ignored, so a
        late tracking result applied after a reset is harmless.

        Returns:
            True if the store was updated.
        """
        if observation.uuid not in self._observations:
            return False
        if observation.confidence <= threshold:
            return False
        self._observations[observation.uuid] = observation
        return True

    def discard(self, uuid: UUID) -> None:
        self._observations.pop(uuid, None)

    def clear(self) -> None:
        self._observations.clear()

    def is_empty(self) -> bool:
        return not self._observations

    def get(self, uuid: UUID) -> Optional[Observation]:
        return self._observations.get(uuid)

    def snapshot(self) -> Tuple[Observation, ...]:
        """Immutable copy of the current observations, oldest first."""
        return tuple(self._observations.values())

    def __len__(self) -> int:
        return len(self._observations)

    def __contains__(self, uuid: object) -> bool:
        return uuid in self._observations
