"""
Vision Tracker: detect rectangles or faces in a camera feed, track them
across frames and float translucent circles over them.

Usage:
    python src/main.py --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --display: Show the preview window (r: reset, m: switch mode, q: quit)
    --record: Record the annotated preview
    --mode: Initial detection mode (rectangles|faces)
    --source: Override camera.device_id (camera index, RTSP URL or video file)
    --web: Serve the web control surface
"""

import os
import sys
import argparse
import logging
from typing import Dict, Any, Tuple, Optional, Union

import yaml

from capture import create_source_from_config
from detection import create_detector
from models.config import Config
from models.mode import DetectionMode
from ops.logging import setup_logging
from overlay.layers_view import LayersView
from pipeline.controller import VisionTrackerController
from pipeline.dispatch import DispatchQueue, MainQueue
from pipeline.engine import create_engine_from_config
from runtime.context import RuntimeContext
from tracking.template_tracker import LEVEL_SCALES, TemplateTracker
from web.state import state as web_state

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'detection', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera') or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if isinstance(camera['device_id'], bool) or not isinstance(camera['device_id'], (int, str)):
        return False, "camera.device_id must be an integer (index) or string (URL or file path)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"

    if 'resolution' in camera:
        resolution = camera['resolution']
        if not isinstance(resolution, list) or len(resolution) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in resolution):
            return False, "camera.resolution values must be positive integers"

    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"

    if camera.get('backend', 'opencv') != 'opencv':
        return False, "camera.backend must be: opencv"

    if camera.get('rotate', 0) not in (0, 90, 180, 270, None):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    # Detection
    detection = config.get('detection') or {}
    try:
        DetectionMode.parse(detection.get('mode', 'faces'))
    except ValueError:
        return False, "detection.mode must be one of: rectangles, faces"

    threshold = detection.get('confidence_threshold', 0.3)
    if not _is_number(threshold) or not (0 <= threshold < 1):
        return False, "detection.confidence_threshold must be a number in [0, 1)"

    rectangles = detection.get('rectangles') or {}
    if 'max_observations' in rectangles:
        mo = rectangles['max_observations']
        if not isinstance(mo, int) or mo <= 0:
            return False, "detection.rectangles.max_observations must be a positive integer"
    for key in ('min_size', 'min_aspect_ratio', 'max_aspect_ratio'):
        if key in rectangles:
            value = rectangles[key]
            if not _is_number(value) or not (0 <= value <= 1):
                return False, f"detection.rectangles.{key} must be between 0 and 1"
    if rectangles.get('min_aspect_ratio', 0.5) > rectangles.get('max_aspect_ratio', 1.0):
        return False, "detection.rectangles.min_aspect_ratio must not exceed max_aspect_ratio"

    faces = detection.get('faces') or {}
    if 'scale_factor' in faces:
        if not _is_number(faces['scale_factor']) or faces['scale_factor'] <= 1:
            return False, "detection.faces.scale_factor must be greater than 1"
    if 'min_neighbors' in faces:
        if not isinstance(faces['min_neighbors'], int) or faces['min_neighbors'] < 0:
            return False, "detection.faces.min_neighbors must be a non-negative integer"

    # Tracking (optional)
    tracking = config.get('tracking') or {}
    if 'level' in tracking and tracking['level'] not in LEVEL_SCALES:
        return False, f"tracking.level must be one of: {', '.join(LEVEL_SCALES)}"
    if 'search_margin' in tracking:
        if not _is_number(tracking['search_margin']) or tracking['search_margin'] < 0:
            return False, "tracking.search_margin must be a non-negative number"
    if 'template_update_threshold' in tracking:
        tut = tracking['template_update_threshold']
        if not _is_number(tut) or not (0 <= tut <= 1):
            return False, "tracking.template_update_threshold must be between 0 and 1"

    # Overlay (optional)
    overlay = config.get('overlay') or {}
    if 'fill_alpha' in overlay:
        if not _is_number(overlay['fill_alpha']) or not (0 <= overlay['fill_alpha'] <= 1):
            return False, "overlay.fill_alpha must be between 0 and 1"
    if 'move_duration' in overlay:
        if not _is_number(overlay['move_duration']) or overlay['move_duration'] < 0:
            return False, "overlay.move_duration must be a non-negative number"

    # Display (optional)
    display = config.get('display') or {}
    view_size = display.get('view_size')
    if view_size is not None:
        if not isinstance(view_size, list) or len(view_size) != 2 or \
                not all(isinstance(x, int) and x > 0 for x in view_size):
            return False, "display.view_size must be a list of two positive integers"

    # Web (optional)
    web = config.get('web') or {}
    if 'port' in web and (not isinstance(web['port'], int) or not (0 < web['port'] < 65536)):
        return False, "web.port must be a valid TCP port"

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def _parse_source(value: str) -> Union[int, str]:
    """Camera indices come in as digits on the command line."""
    return int(value) if value.isdigit() else value


def build_controller(cfg: Config, mode: DetectionMode) -> VisionTrackerController:
    """Wire the controller with its queues, tracker, detectors and overlay view."""
    layers_view = LayersView(
        fill_alpha=cfg.overlay.fill_alpha,
        move_duration=cfg.overlay.move_duration,
    )
    view_size = tuple(cfg.display.view_size) if cfg.display.view_size else None
    return VisionTrackerController(
        tracker=TemplateTracker(cfg.tracking),
        layers_view=layers_view,
        sample_queue=DispatchQueue("sample.queue"),
        main_queue=MainQueue(),
        detector_factory=lambda m: create_detector(m, cfg.detection),
        mode=mode,
        confidence_threshold=cfg.detection.confidence_threshold,
        view_size=view_size,
    )


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Vision Tracker - rectangle and face tracking demo')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Show the preview window')
    parser.add_argument('--record', action='store_true',
                        help='Record the annotated preview')
    parser.add_argument('--mode', type=str, choices=[m.value for m in DetectionMode],
                        help='Initial detection mode (overrides config)')
    parser.add_argument('--source', type=str,
                        help='Camera index, RTSP URL or video file (overrides config)')
    parser.add_argument('--web', action='store_true',
                        help='Serve the web control surface (overrides config)')
    args = parser.parse_args()

    config = load_config(args.config)
    if args.source is not None:
        config.setdefault('camera', {})['device_id'] = _parse_source(args.source)
    if args.mode is not None:
        config.setdefault('detection', {})['mode'] = args.mode
    if args.web:
        config.setdefault('web', {})['enabled'] = True

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    logging.info("Starting Vision Tracker")

    cfg = Config.from_dict(config)
    controller = build_controller(cfg, DetectionMode.parse(cfg.detection.mode))
    source = create_source_from_config(config['camera'], source_id="main-camera")

    ctx = RuntimeContext(web_state=web_state)
    web_state.set_controller(controller)

    if cfg.web.enabled:
        from web.app import start_web_server
        start_web_server(cfg.web.host, cfg.web.port)

    engine = create_engine_from_config(
        config,
        source,
        controller,
        ctx=ctx,
        display=args.display,
        record=args.record,
    )

    try:
        engine.run()
    except RuntimeError as e:
        # Camera unavailable: reported once, no retry beyond the source's own attempts
        logging.error(f"Failed to start capture: {e}")
        sys.exit(1)
    finally:
        web_state.set_controller(None)

    logging.info("Vision Tracker stopped")


if __name__ == "__main__":
    main()
