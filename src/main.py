"""
Live object detection on a camera feed.

Reads frames from a camera (or video file / image list), runs a pretrained
detector on each frame, suppresses overlapping boxes, and shows the result
until the stream ends or the cancel key is pressed.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --no-display: Run without a display window
    --max-frames: Stop after this many frames
    --camera: Override camera.device_id
"""

import os
import sys
import argparse
import logging
import signal
import yaml
from typing import Dict, Any, Tuple, Optional

from models.config import Config, key_code
from ops.logging import setup_logging
from pipeline.engine import DetectionLoop
from runtime.context import create_session_from_config
from runtime.errors import DeviceUnavailable, ModelLoadError


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

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

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
    backend = camera.get('backend', 'opencv')
    if backend not in ('opencv', 'images'):
        return False, "camera.backend must be one of: opencv, images"
    if backend == 'opencv':
        device_id = camera.get('device_id', 0)
        if isinstance(device_id, bool) or not isinstance(device_id, (int, str)):
            return False, "camera.device_id must be an integer (index) or string (URL/path)"
        if isinstance(device_id, int) and device_id < 0:
            return False, "camera.device_id integer must be non-negative"
    else:
        paths = camera.get('image_paths')
        if not isinstance(paths, list) or not paths:
            return False, "camera.image_paths must be a non-empty list when camera.backend is 'images'"

    if camera.get('resolution') is not None:
        resolution = camera['resolution']
        if not isinstance(resolution, list) or len(resolution) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in resolution):
            return False, "camera.resolution values must be positive integers"
    if 'buffer_size' in camera:
        if not isinstance(camera['buffer_size'], int) or isinstance(camera['buffer_size'], bool) or camera['buffer_size'] < 1:
            return False, "camera.buffer_size must be a positive integer"
    if 'image_hold_ms' in camera:
        if not isinstance(camera['image_hold_ms'], int) or isinstance(camera['image_hold_ms'], bool) or camera['image_hold_ms'] < 0:
            return False, "camera.image_hold_ms must be a non-negative integer"

    # Detection
    detection = config.get('detection') or {}
    det_backend = detection.get('backend', 'darknet')
    if det_backend not in ('darknet', 'tensorflow'):
        return False, "detection.backend must be one of: darknet, tensorflow"
    if not isinstance(detection.get('model_weights'), str) or not detection.get('model_weights'):
        return False, "detection.model_weights is required"
    if det_backend == 'darknet':
        if not isinstance(detection.get('model_config'), str) or not detection.get('model_config'):
            return False, "detection.model_config is required when detection.backend is 'darknet'"

    for key in ('confidence_threshold', 'iou_threshold', 'score_threshold'):
        if detection.get(key) is None:
            continue
        value = detection[key]
        if not _is_number(value) or not (0 <= value <= 1):
            return False, f"detection.{key} must be a number between 0 and 1"

    if detection.get('input_size') is not None:
        size = detection['input_size']
        if not isinstance(size, list) or len(size) != 2 or not all(isinstance(x, int) and x > 0 for x in size):
            return False, "detection.input_size must be a list of two positive integers"

    # Display
    display = config.get('display') or {}
    if 'cancel_key' in display:
        try:
            key_code(str(display['cancel_key']))
        except ValueError:
            return False, "display.cancel_key must be ESC, ENTER, SPACE, TAB or a single character"

    # Loop
    loop = config.get('loop') or {}
    if loop.get('max_frames') is not None:
        if not isinstance(loop['max_frames'], int) or loop['max_frames'] <= 0:
            return False, "loop.max_frames must be a positive integer"
    if 'frame_budget_ms' in loop and not _is_number(loop['frame_budget_ms']):
        return False, "loop.frame_budget_ms must be a number"

    # Logging
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def apply_cli_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Apply command-line overrides on top of the loaded config."""
    if args.no_display:
        config.setdefault('display', {})['enabled'] = False
    if args.max_frames is not None:
        config.setdefault('loop', {})['max_frames'] = args.max_frames
    if args.camera is not None:
        camera = config.setdefault('camera', {})
        camera['device_id'] = int(args.camera) if args.camera.isdigit() else args.camera
    return config


def main(argv=None) -> int:
    """Main application function. Returns the process exit status."""
    parser = argparse.ArgumentParser(description='Live object detection')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--no-display', action='store_true',
                        help='Run without a display window')
    parser.add_argument('--max-frames', type=int, default=None,
                        help='Stop after this many frames')
    parser.add_argument('--camera', type=str, default=None,
                        help='Camera index, stream URL or video file')
    args = parser.parse_args(argv)

    raw_config = apply_cli_overrides(load_config(args.config), args)

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        return 1

    setup_logging(raw_config['log_path'], raw_config['log_level'])
    config = Config.from_dict(raw_config)

    logging.info("Starting live detection")

    try:
        session = create_session_from_config(config)
    except ModelLoadError as e:
        logging.error(f"Model load failed: {e}")
        return 1

    loop = DetectionLoop(session)

    def _handle_signal(signum, frame):
        logging.info(f"Received signal {signum}, stopping")
        loop.stop()

    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        stats = loop.run()
    except DeviceUnavailable as e:
        logging.error(f"Frame source unavailable: {e}")
        return 1

    logging.info(
        f"Finished: frames={stats.frames_read}, detections={stats.detection_count}, "
        f"mean_latency={stats.mean_latency_ms:.1f}ms, reason={stats.stop_reason}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
