"""
Runtime session and error taxonomy.
"""

from .errors import (
    DecodeError,
    DetectionLoopError,
    DeviceUnavailable,
    InferenceError,
    ModelLoadError,
)

__all__ = [
    "DecodeError",
    "DetectionLoopError",
    "DeviceUnavailable",
    "InferenceError",
    "ModelLoadError",
]
