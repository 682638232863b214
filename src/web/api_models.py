from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TrackerStatusResponse(BaseModel):
    """Live tracker status for polling clients."""
    mode: str = Field(..., description="rectangles|faces")
    mode_label: str = Field(..., description="Mode text currently shown on the preview")
    state: str = Field(..., description="detecting|tracking")
    tracked_observations: int = Field(0, description="Entries in the observation store")
    overlay_shapes: int = Field(0, description="Circles currently drawn")
    fps: float = Field(0.0, description="Capture frame rate")
    dropped_frames: int = Field(0, description="Frames discarded while the worker was busy")
    last_frame_age_s: Optional[float] = Field(None, description="Seconds since last preview frame")
    uptime_seconds: Optional[int] = None


class ControlResponse(BaseModel):
    """Acknowledgement of a reset or mode switch request."""
    action: str = Field(..., description="reset|switch_mode")
    accepted: bool = True
    mode: str = Field(..., description="Mode at the time of the request")


class HealthResponse(BaseModel):
    status: str = Field(..., description="ok|no_pipeline")
    timestamp: float
