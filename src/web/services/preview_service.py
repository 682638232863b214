from __future__ import annotations

import time
from typing import Iterable, Optional

import cv2

from ..state import SharedState


class PreviewService:
    """JPEG access to the annotated preview published by the frame loop."""

    def __init__(self, shared_state: SharedState):
        self._state = shared_state

    def snapshot_jpeg(self) -> Optional[bytes]:
        """Latest preview as JPEG bytes, or None before the first frame."""
        frame = self._state.get_frame()
        if frame is None:
            return None
        ok, buf = cv2.imencode(".jpg", frame)
        if not ok:
            raise RuntimeError("Failed to encode JPEG")
        return buf.tobytes()

    def mjpeg_stream(self, fps: int = 5) -> Iterable[bytes]:
        """Yield MJPEG multipart chunks of the preview."""
        fps = max(1, min(30, int(fps)))
        delay = 1.0 / fps
        while True:
            jpg = self.snapshot_jpeg()
            if jpg is not None:
                yield b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
            time.sleep(delay)
