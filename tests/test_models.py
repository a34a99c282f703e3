"""
Smoke tests for typed models and adapters.
"""

import time
import pytest
import numpy as np
from dataclasses import FrozenInstanceError

from models.frame import FrameData
from models.detection import Box, Candidate, DetectionSet
from models.config import (
    Config,
    CameraConfig,
    DetectorConfig,
    DisplayConfig,
    LoopConfig,
    key_code,
)


class TestBox:
    def test_properties(self):
        box = Box(left=100, top=100, width=100, height=50)
        assert box.right == 200
        assert box.bottom == 150
        assert box.area == 5000

    def test_clamped_to_frame(self):
        box = Box(left=-20, top=-10, width=100, height=50)
        assert box.clamped(640, 480) == (0, 0, 80, 40)

        box = Box(left=600, top=450, width=100, height=100)
        assert box.clamped(640, 480) == (600, 450, 639, 479)

    def test_clamped_outside_frame_collapses(self):
        box = Box(left=-60, top=-60, width=20, height=20)
        x1, y1, x2, y2 = box.clamped(100, 100)
        assert x2 <= x1 and y2 <= y1


class TestCandidate:
    def test_is_frozen(self):
        cand = Candidate(class_id=1, confidence=0.9, box=Box(0, 0, 10, 10))
        with pytest.raises(FrozenInstanceError):
            cand.confidence = 0.1

    def test_label_uses_class_name(self):
        cand = Candidate(class_id=2, confidence=0.876, box=Box(0, 0, 10, 10), class_name="car")
        assert cand.label == "car: 0.88"

    def test_label_falls_back_to_id(self):
        cand = Candidate(class_id=7, confidence=0.5, box=Box(0, 0, 10, 10))
        assert cand.label == "7: 0.50"


class TestDetectionSet:
    def test_empty(self):
        ds = DetectionSet()
        assert len(ds) == 0
        assert not ds
        assert list(ds) == []

    def test_preserves_order(self):
        a = Candidate(class_id=0, confidence=0.9, box=Box(0, 0, 10, 10))
        b = Candidate(class_id=1, confidence=0.7, box=Box(50, 50, 10, 10))
        ds = DetectionSet.from_candidates([a, b], frame_index=4)
        assert list(ds) == [a, b]
        assert ds.frame_index == 4


class TestFrameData:
    def test_from_numpy(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        ts = time.time()
        fd = FrameData.from_numpy(frame, timestamp=ts, frame_index=5, source="cam")
        assert fd.width == 640
        assert fd.height == 480
        assert fd.frame_index == 5
        assert fd.frame is frame


class TestKeyCode:
    def test_named_keys(self):
        assert key_code("ESC") == 27
        assert key_code("esc") == 27
        assert key_code("SPACE") == 32

    def test_single_character(self):
        assert key_code("q") == ord("q")

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            key_code("F13")


class TestConfig:
    def test_defaults(self):
        cfg = Config()
        assert cfg.detection.confidence_threshold == 0.5
        assert cfg.detection.iou_threshold == 0.4
        assert cfg.detection.effective_input_size == (416, 416)
        assert cfg.camera.device_id == 0
        assert cfg.display.cancel_key == "ESC"
        assert cfg.display.cancel_key_code == 27
        assert cfg.detection.class_aware_nms is False

    def test_score_threshold_defaults_to_confidence(self):
        cfg = DetectorConfig(confidence_threshold=0.6)
        assert cfg.effective_score_threshold == 0.6

        cfg = DetectorConfig(confidence_threshold=0.6, score_threshold=0.3)
        assert cfg.effective_score_threshold == 0.3

    def test_classifier_input_size_default(self):
        cfg = DetectorConfig(backend="tensorflow")
        assert cfg.effective_input_size == (224, 224)

    def test_from_dict(self, valid_config):
        cfg = Config.from_dict(valid_config)
        assert cfg.camera.resolution == [1280, 720]
        assert cfg.detection.model_config == "models/yolov3.cfg"
        assert cfg.detection.input_size == (416, 416)
        assert cfg.display.enabled is False
        assert cfg.loop.max_frames is None
        assert cfg.log_level == "INFO"

    def test_round_trip(self, valid_config):
        cfg = Config.from_dict(valid_config)
        again = Config.from_dict(cfg.to_dict())
        assert again == cfg

    def test_section_defaults_when_missing(self):
        cfg = Config.from_dict({})
        assert cfg.camera == CameraConfig()
        assert cfg.display == DisplayConfig()
        assert cfg.loop == LoopConfig()

    def test_camera_capture_settings_round_trip(self):
        cfg = Config.from_dict({"camera": {"device_id": 0, "buffer_size": 4, "image_hold_ms": 1500}})
        assert cfg.camera.buffer_size == 4
        assert cfg.camera.image_hold_ms == 1500

        again = Config.from_dict(cfg.to_dict())
        assert again.camera.buffer_size == 4
        assert again.camera.image_hold_ms == 1500
