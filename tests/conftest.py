"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.frame import FrameData
from observation.base import ObservationSource, ObservationConfig


class MockSource(ObservationSource):
    """In-memory observation source for testing."""

    def __init__(self, config: ObservationConfig, frames: list = None, max_frames: int = None):
        super().__init__(config)
        self._frames = frames
        self._max_frames = max_frames
        self._pos = 0
        self.open_calls = 0
        self.close_calls = 0

    def open(self) -> None:
        self.open_calls += 1
        self._is_open = True
        self._pos = 0
        self._frame_index = 0

    def read(self) -> FrameData | None:
        if not self._is_open:
            return None

        if self._frames is not None:
            if self._pos >= len(self._frames):
                return None
            frame = self._frames[self._pos]
        else:
            if self._max_frames is not None and self._pos >= self._max_frames:
                return None
            frame = np.zeros((480, 640, 3), dtype=np.uint8)

        self._pos += 1
        self._frame_index += 1

        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        self.close_calls += 1
        self._is_open = False


def make_row(cx, cy, w, h, scores, objectness=1.0):
    """Build one raw detector row with geometry as frame fractions."""
    return [cx, cy, w, h, objectness] + list(scores)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0

detection:
  backend: "darknet"
  model_config: "models/yolov3.cfg"
  model_weights: "models/yolov3.weights"
  confidence_threshold: 0.5
  iou_threshold: 0.4

display:
  enabled: true
  cancel_key: "ESC"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1280, 720],
        },
        "detection": {
            "backend": "darknet",
            "model_config": "models/yolov3.cfg",
            "model_weights": "models/yolov3.weights",
            "confidence_threshold": 0.5,
            "iou_threshold": 0.4,
            "input_size": [416, 416],
        },
        "display": {
            "enabled": False,
            "cancel_key": "ESC",
        },
        "loop": {
            "max_frames": None,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
