from __future__ import annotations

import time
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response, StreamingResponse

from ..api_models import ControlResponse, HealthResponse, TrackerStatusResponse
from ..services.preview_service import PreviewService
from ..state import state

router = APIRouter()


def _require_controller():
    controller = state.controller
    if controller is None:
        raise HTTPException(status_code=503, detail="Tracking pipeline is not running")
    return controller


def _age(ts: Optional[float], now: float) -> Optional[float]:
    return (now - ts) if ts else None


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(
        status="ok" if state.controller is not None else "no_pipeline",
        timestamp=time.time(),
    )


@router.get("/status", response_model=TrackerStatusResponse)
def status():
    """
    Tracker status: mode, detect/track state, store and overlay sizes,
    capture rate and frame freshness.
    """
    controller = _require_controller()
    now = time.time()
    sys_stats = state.get_system_stats_copy()
    start_time = sys_stats.get("start_time")

    return TrackerStatusResponse(
        mode=str(controller.mode),
        mode_label=controller.mode_label,
        state=controller.state,
        tracked_observations=len(controller.store),
        overlay_shapes=len(controller.layers_view.tracked_shapes),
        fps=float(sys_stats.get("fps") or 0.0),
        dropped_frames=int(sys_stats.get("dropped_frames") or 0),
        last_frame_age_s=_age(sys_stats.get("last_frame_ts"), now),
        uptime_seconds=int(now - start_time) if start_time else None,
    )


@router.post("/reset", response_model=ControlResponse)
def reset():
    controller = _require_controller()
    controller.reset()
    return ControlResponse(action="reset", mode=str(controller.mode))


@router.post("/mode", response_model=ControlResponse)
def switch_mode():
    """Toggle between rectangles and faces. The switch also resets tracking."""
    controller = _require_controller()
    controller.switch_detection_mode()
    return ControlResponse(action="switch_mode", mode=str(controller.mode))


@router.get("/frame.jpg")
def frame_snapshot():
    try:
        jpeg_bytes = PreviewService(state).snapshot_jpeg()
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if jpeg_bytes is None:
        raise HTTPException(status_code=503, detail="No frame available yet")
    return Response(content=jpeg_bytes, media_type="image/jpeg", headers={"Cache-Control": "no-store"})


@router.get("/stream.mjpg")
def frame_stream(fps: int = 5):
    return StreamingResponse(
        PreviewService(state).mjpeg_stream(fps=fps),
        media_type="multipart/x-mixed-replace; boundary=frame",
    )
