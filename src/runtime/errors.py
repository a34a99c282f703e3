"""Exceptions raised by the detection loop and its collaborators."""


class DetectionLoopError(Exception):
    """Base detection loop exception."""


class DeviceUnavailable(DetectionLoopError, RuntimeError):
    """Raised when a frame source cannot be opened. Fatal at startup."""


class ModelLoadError(DetectionLoopError):
    """Raised when detector topology or weights cannot be loaded. Fatal at startup."""


class InferenceError(DetectionLoopError):
    """Raised when inference on a single frame fails. The frame is skipped."""


class DecodeError(InferenceError):
    """Raised when a raw output tensor does not match the expected row layout."""
