"""
OpenCV-based frame source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- RTSP/IP cameras (device_id as str URL)
- Video files (device_id as file path)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urlparse, urlunparse

import cv2
import numpy as np

from models.frame import FrameData
from .base import FrameSource


def sanitize_url(device_id: Union[int, str]) -> str:
    """Strip credentials from an RTSP URL before it is logged."""
    if not isinstance(device_id, str) or "@" not in device_id:
        return str(device_id)
    parsed = urlparse(device_id)
    netloc = parsed.hostname or ""
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse((parsed.scheme, f"***@{netloc}", parsed.path, parsed.params, parsed.query, parsed.fragment))


@dataclass
class OpenCVSourceConfig:
    """
    Configuration for OpenCV-based frame sources.

    Attributes:
        source_id: Name used in logs and on each FrameData.
        resolution: Requested (width, height) for USB cameras. None = device default.
        fps: Requested capture rate for USB cameras.
        orientation: Fixed clockwise rotation applied to every frame (0, 90, 180, 270).
        device_id: Camera index (int), RTSP URL (str), or file path (str).
        rtsp_transport: Transport protocol for RTSP ("tcp" or "udp").
        buffer_size: Capture buffer size (1 keeps live feeds fresh).
        max_retries: Attempts to open the device before giving up.
        swap_rb: Swap R/B channels.
        flip_horizontal: Mirror the frame (front cameras).
        flip_vertical: Flip the frame upside down.
    """
    source_id: str = "camera"
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None
    orientation: int = 0
    device_id: Union[int, str] = 0
    rtsp_transport: str = "tcp"
    buffer_size: int = 1
    max_retries: int = 1
    swap_rb: bool = False
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """Create from the `camera` section of the YAML config."""
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            orientation=camera_cfg.get("rotate", 0) or 0,
            device_id=camera_cfg.get("device_id", 0),
            rtsp_transport=camera_cfg.get("rtsp_transport", "tcp"),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=camera_cfg.get("max_retries", 1),
            swap_rb=camera_cfg.get("swap_rb", False),
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
            flip_vertical=camera_cfg.get("flip_vertical", False),
        )


class OpenCVSource(FrameSource):
    """
    Frame source backed by cv2.VideoCapture.

    Example:
        config = OpenCVSourceConfig(device_id=0, resolution=(1280, 720))
        with OpenCVSource(config) as source:
            frame_data = source.read()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config.source_id, config.orientation)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_rtsp(self) -> bool:
        return isinstance(self.device_id, str) and (
            self.device_id.startswith("rtsp://") or
            self.device_id.startswith("rtsps://")
        )

    @property
    def is_file(self) -> bool:
        return (
            isinstance(self.device_id, str) and
            not self.is_rtsp and
            os.path.exists(self.device_id)
        )

    def open(self) -> None:
        if self._opened:
            return

        self._initialize(retry_count=0)
        self._opened = True
        self.frames_read = 0

        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={sanitize_url(self.device_id)}, resolution={self._opencv_config.resolution}, "
            f"orientation={self.orientation}"
        )

    def _initialize(self, retry_count: int = 0) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

        if retry_count > 0:
            wait_time = min(2 ** retry_count, 10)
            logging.info(
                f"Retrying initialization (attempt {retry_count + 1}/"
                f"{self._opencv_config.max_retries}) after {wait_time}s"
            )
            time.sleep(wait_time)

        if self.is_rtsp:
            os.environ["OPENCV_FFMPEG_CAPTURE_OPTIONS"] = (
                f"rtsp_transport;{self._opencv_config.rtsp_transport}"
            )

        self._cap = cv2.VideoCapture(self.device_id)

        if not self._cap.isOpened():
            if retry_count < self._opencv_config.max_retries - 1:
                logging.warning(f"Failed to open device {sanitize_url(self.device_id)}, retrying...")
                return self._initialize(retry_count + 1)
            self._cap.release()
            self._cap = None
            raise RuntimeError(
                f"Failed to open device {sanitize_url(self.device_id)} after "
                f"{self._opencv_config.max_retries} attempt(s)"
            )

        # Only USB cameras accept capture properties
        if isinstance(self.device_id, int) and self._opencv_config.resolution:
            w, h = self._opencv_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if self._opencv_config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self._opencv_config.fps)
            self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._opencv_config.buffer_size)

            logging.info(
                f"Camera actual settings - Resolution: "
                f"({self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)}x{self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)}), "
                f"FPS: {self._cap.get(cv2.CAP_PROP_FPS)}"
            )

    def read(self) -> Optional[FrameData]:
        if not self._opened or self._cap is None:
            return None

        ret, image = self._cap.read()
        if not ret or image is None:
            if self.is_file:
                logging.info("End of video file reached")
            else:
                logging.warning(f"Failed to read frame from {sanitize_url(self.device_id)}")
            return None

        image = self._apply_transforms(image)
        self.frames_read += 1

        return FrameData(
            image,
            timestamp=time.time(),
            frame_index=self.frames_read,
            source=self.source_id,
            orientation=self.orientation,
        )

    def _apply_transforms(self, image: np.ndarray) -> np.ndarray:
        """Apply the fixed orientation, flips and channel swap."""
        cfg = self._opencv_config

        if cfg.orientation == 90:
            image = cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE)
        elif cfg.orientation == 180:
            image = cv2.rotate(image, cv2.ROTATE_180)
        elif cfg.orientation == 270:
            image = cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE)

        if cfg.flip_horizontal or cfg.flip_vertical:
            if cfg.flip_horizontal and cfg.flip_vertical:
                flip_code = -1
            elif cfg.flip_horizontal:
                flip_code = 1
            else:
                flip_code = 0
            image = cv2.flip(image, flip_code)

        if cfg.swap_rb:
            image = image[..., ::-1].copy()

        return image

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._opened:
            logging.info(f"OpenCVSource closed: source_id={self.source_id}")
        self._opened = False


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "main-camera") -> FrameSource:
    """Build the frame source selected by `camera.backend`."""
    backend = camera_cfg.get("backend", "opencv")
    if backend != "opencv":
        raise ValueError(f"Unsupported camera backend: {backend}")
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))
