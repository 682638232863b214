from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass
class RuntimeContext:
    """Carries frame-loop output to whoever is watching (the web state, when enabled)."""

    web_state: Any = None

    # Observability
    system_stats: dict = field(default_factory=dict)

    def update_frame(self, frame: np.ndarray, fps: float, dropped_frames: int = 0):
        self.system_stats["fps"] = fps
        self.system_stats["dropped_frames"] = dropped_frames
        self.system_stats["last_frame_ts"] = time.time()
        if hasattr(self.web_state, "set_frame"):
            self.web_state.set_frame(frame)
        if hasattr(self.web_state, "update_system_stats"):
            self.web_state.update_system_stats(dict(self.system_stats))
