"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


# Named keys accepted for display.cancel_key (cv2.waitKey codes)
NAMED_KEYS = {
    "ESC": 27,
    "ENTER": 13,
    "SPACE": 32,
    "TAB": 9,
}


def key_code(key: str) -> int:
    """
    Resolve a cancellation key identifier to a cv2.waitKey code.

    Accepts a named key (ESC, ENTER, SPACE, TAB; case-insensitive) or a
    single character.
    """
    named = NAMED_KEYS.get(key.upper())
    if named is not None:
        return named
    if len(key) == 1:
        return ord(key)
    raise ValueError(f"Unknown cancel key: {key!r}")


DEFAULT_INPUT_SIZES = {
    "darknet": (416, 416),
    "tensorflow": (224, 224),
}


@dataclass
class CameraConfig:
    """Frame source configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    image_paths: List[str] = field(default_factory=list)
    resolution: Optional[List[int]] = None
    fps: Optional[int] = None
    max_retries: int = 3
    buffer_size: int = 1
    image_hold_ms: int = 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            image_paths=list(d.get("image_paths") or []),
            resolution=d.get("resolution"),
            fps=d.get("fps"),
            max_retries=d.get("max_retries", 3),
            buffer_size=d.get("buffer_size", 1),
            image_hold_ms=d.get("image_hold_ms", 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "backend": self.backend,
            "device_id": self.device_id,
            "max_retries": self.max_retries,
            "buffer_size": self.buffer_size,
            "image_hold_ms": self.image_hold_ms,
        }
        if self.image_paths:
            d["image_paths"] = list(self.image_paths)
        if self.resolution is not None:
            d["resolution"] = self.resolution
        if self.fps is not None:
            d["fps"] = self.fps
        return d


@dataclass
class DetectorConfig:
    """
    Detector and post-processing configuration.

    score_threshold defaults to confidence_threshold when not given; the two
    are kept separate so the decode and suppress stages can differ.
    """
    backend: str = "darknet"
    model_config: str = ""
    model_weights: str = ""
    class_names_file: Optional[str] = None
    confidence_threshold: float = 0.5
    iou_threshold: float = 0.4
    score_threshold: Optional[float] = None
    input_size: Optional[Tuple[int, int]] = None
    class_aware_nms: bool = False
    mean_offset: float = 117.0

    @property
    def effective_score_threshold(self) -> float:
        if self.score_threshold is None:
            return self.confidence_threshold
        return self.score_threshold

    @property
    def effective_input_size(self) -> Tuple[int, int]:
        """Network input size; 416x416 for detectors, 224x224 for classifiers."""
        if self.input_size is not None:
            return self.input_size
        return DEFAULT_INPUT_SIZES.get(self.backend, (416, 416))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectorConfig":
        input_size = d.get("input_size")
        if input_size is not None:
            input_size = (int(input_size[0]), int(input_size[1]))
        return cls(
            backend=d.get("backend", "darknet"),
            model_config=d.get("model_config", ""),
            model_weights=d.get("model_weights", ""),
            class_names_file=d.get("class_names_file"),
            confidence_threshold=float(d.get("confidence_threshold", 0.5)),
            iou_threshold=float(d.get("iou_threshold", 0.4)),
            score_threshold=d.get("score_threshold"),
            input_size=input_size,
            class_aware_nms=bool(d.get("class_aware_nms", False)),
            mean_offset=float(d.get("mean_offset", 117.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "backend": self.backend,
            "model_config": self.model_config,
            "model_weights": self.model_weights,
            "confidence_threshold": self.confidence_threshold,
            "iou_threshold": self.iou_threshold,
            "class_aware_nms": self.class_aware_nms,
            "mean_offset": self.mean_offset,
        }
        if self.input_size is not None:
            d["input_size"] = list(self.input_size)
        if self.class_names_file is not None:
            d["class_names_file"] = self.class_names_file
        if self.score_threshold is not None:
            d["score_threshold"] = self.score_threshold
        return d


@dataclass
class DisplayConfig:
    """Display window and cancellation key configuration."""
    enabled: bool = True
    window_name: str = "Detections"
    cancel_key: str = "ESC"
    poll_ms: int = 1

    @property
    def cancel_key_code(self) -> int:
        return key_code(self.cancel_key)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DisplayConfig":
        return cls(
            enabled=d.get("enabled", True),
            window_name=d.get("window_name", "Detections"),
            cancel_key=str(d.get("cancel_key", "ESC")),
            poll_ms=d.get("poll_ms", 1),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "window_name": self.window_name,
            "cancel_key": self.cancel_key,
            "poll_ms": self.poll_ms,
        }


@dataclass
class LoopConfig:
    """
    Detection loop configuration.

    Attributes:
        max_frames: Stop after this many acquired frames. None = unbounded.
        frame_budget_ms: Per-frame wall-clock budget; overruns are logged.
        stats_log_interval: Seconds between status log messages.
    """
    max_frames: Optional[int] = None
    frame_budget_ms: float = 250.0
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoopConfig":
        return cls(
            max_frames=d.get("max_frames"),
            frame_budget_ms=d.get("frame_budget_ms", 250.0),
            stats_log_interval=d.get("stats_log_interval", 60.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_frames": self.max_frames,
            "frame_budget_ms": self.frame_budget_ms,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectorConfig = field(default_factory=DetectorConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)
    log_path: str = "logs/detector.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            detection=DetectorConfig.from_dict(d.get("detection") or {}),
            display=DisplayConfig.from_dict(d.get("display") or {}),
            loop=LoopConfig.from_dict(d.get("loop") or {}),
            log_path=d.get("log_path", "logs/detector.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "display": self.display.to_dict(),
            "loop": self.loop.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
