"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    buffer_size: int = 1
    max_retries: int = 1
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            buffer_size=d.get("buffer_size", 1),
            max_retries=d.get("max_retries", 1),
            swap_rb=d.get("swap_rb", False),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "buffer_size": self.buffer_size,
            "max_retries": self.max_retries,
            "swap_rb": self.swap_rb,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
        }


@dataclass
class RectangleDetectionConfig:
    """
    Rectangle detector configuration.

    min_size is a fraction of the shorter frame side; aspect ratios are
    short side / long side of the quadrilateral.
    """
    max_observations: int = 5
    min_size: float = 0.2
    min_aspect_ratio: float = 0.5
    max_aspect_ratio: float = 1.0
    quadrature_tolerance: float = 30.0
    canny_low: int = 50
    canny_high: int = 150

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RectangleDetectionConfig":
        return cls(
            max_observations=d.get("max_observations", 5),
            min_size=d.get("min_size", 0.2),
            min_aspect_ratio=d.get("min_aspect_ratio", 0.5),
            max_aspect_ratio=d.get("max_aspect_ratio", 1.0),
            quadrature_tolerance=d.get("quadrature_tolerance", 30.0),
            canny_low=d.get("canny_low", 50),
            canny_high=d.get("canny_high", 150),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_observations": self.max_observations,
            "min_size": self.min_size,
            "min_aspect_ratio": self.min_aspect_ratio,
            "max_aspect_ratio": self.max_aspect_ratio,
            "quadrature_tolerance": self.quadrature_tolerance,
            "canny_low": self.canny_low,
            "canny_high": self.canny_high,
        }


@dataclass
class FaceDetectionConfig:
    """Haar cascade face detector configuration."""
    cascade: str = "haarcascade_frontalface_default.xml"
    scale_factor: float = 1.1
    min_neighbors: int = 5
    min_size: List[int] = field(default_factory=lambda: [30, 30])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FaceDetectionConfig":
        return cls(
            cascade=d.get("cascade", "haarcascade_frontalface_default.xml"),
            scale_factor=d.get("scale_factor", 1.1),
            min_neighbors=d.get("min_neighbors", 5),
            min_size=d.get("min_size", [30, 30]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cascade": self.cascade,
            "scale_factor": self.scale_factor,
            "min_neighbors": self.min_neighbors,
            "min_size": self.min_size,
        }


@dataclass
class DetectionConfig:
    """Detection configuration."""
    mode: str = "faces"
    confidence_threshold: float = 0.3
    rectangles: RectangleDetectionConfig = field(default_factory=RectangleDetectionConfig)
    faces: FaceDetectionConfig = field(default_factory=FaceDetectionConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            mode=d.get("mode", "faces"),
            confidence_threshold=d.get("confidence_threshold", 0.3),
            rectangles=RectangleDetectionConfig.from_dict(d.get("rectangles") or {}),
            faces=FaceDetectionConfig.from_dict(d.get("faces") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "confidence_threshold": self.confidence_threshold,
            "rectangles": self.rectangles.to_dict(),
            "faces": self.faces.to_dict(),
        }


@dataclass
class TrackingConfig:
    """Template tracker configuration."""
    level: str = "accurate"
    search_margin: float = 0.5
    template_update_threshold: float = 0.8
    min_template_size: int = 8

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrackingConfig":
        return cls(
            level=d.get("level", "accurate"),
            search_margin=d.get("search_margin", 0.5),
            template_update_threshold=d.get("template_update_threshold", 0.8),
            min_template_size=d.get("min_template_size", 8),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "search_margin": self.search_margin,
            "template_update_threshold": self.template_update_threshold,
            "min_template_size": self.min_template_size,
        }


@dataclass
class OverlayConfig:
    """Overlay circle appearance."""
    fill_alpha: float = 0.5
    move_duration: float = 0.3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OverlayConfig":
        return cls(
            fill_alpha=d.get("fill_alpha", 0.5),
            move_duration=d.get("move_duration", 0.3),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"fill_alpha": self.fill_alpha, "move_duration": self.move_duration}


@dataclass
class DisplayConfig:
    """Preview window configuration. view_size None = frame size."""
    window_name: str = "Vision Tracker"
    view_size: Optional[List[int]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DisplayConfig":
        return cls(
            window_name=d.get("window_name", "Vision Tracker"),
            view_size=d.get("view_size"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"window_name": self.window_name}
        if self.view_size is not None:
            d["view_size"] = self.view_size
        return d


@dataclass
class WebConfig:
    """Web control surface configuration."""
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", False),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 8000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    web: WebConfig = field(default_factory=WebConfig)
    stats_log_interval: float = 60.0
    log_path: str = "logs/vision_tracker.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            detection=DetectionConfig.from_dict(d.get("detection") or {}),
            tracking=TrackingConfig.from_dict(d.get("tracking") or {}),
            overlay=OverlayConfig.from_dict(d.get("overlay") or {}),
            display=DisplayConfig.from_dict(d.get("display") or {}),
            web=WebConfig.from_dict(d.get("web") or {}),
            stats_log_interval=d.get("stats_log_interval", 60.0),
            log_path=d.get("log_path", "logs/vision_tracker.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "tracking": self.tracking.to_dict(),
            "overlay": self.overlay.to_dict(),
            "display": self.display.to_dict(),
            "web": self.web.to_dict(),
            "stats_log_interval": self.stats_log_interval,
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
