"""
Typed models for the live detection application.

Use the adapter functions to convert from config dicts and numpy rows.
"""

from .frame import FrameData
from .detection import Box, Candidate, DetectionSet
from .config import (
    Config,
    CameraConfig,
    DetectorConfig,
    DisplayConfig,
    LoopConfig,
    key_code,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Box",
    "Candidate",
    "DetectionSet",
    # Config
    "Config",
    "CameraConfig",
    "DetectorConfig",
    "DisplayConfig",
    "LoopConfig",
    "key_code",
]
