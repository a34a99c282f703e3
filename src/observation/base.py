"""
Frame source contract used by the detection loop.

A source is opened once, read until it returns None, and closed exactly
once. Implementations: OpenCVSource (camera index, stream URL, video file)
and ImageFileSource (ordered still images).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Settings shared by every frame source.

    resolution and fps are requests; None leaves the device default.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None


class ObservationSource(ABC):
    """Base class for frame sources. read() returns None at end of stream."""

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def poll_override_ms(self) -> Optional[int]:
        """
        Key-poll timeout this source wants after each displayed frame.

        None keeps display.poll_ms; 0 waits for a key press.
        """
        return None

    @abstractmethod
    def open(self) -> None:
        """
        Acquire the device or input.

        Raises:
            DeviceUnavailable: If the source cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Return the next frame, or None once the stream is exhausted."""

    @abstractmethod
    def close(self) -> None:
        """Release the source. Safe to call more than once."""
