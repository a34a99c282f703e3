"""
Captured frame passed from a frame source to the detection loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass
class FrameData:
    """
    One BGR image plus where and when it was captured.

    The detection loop owns the buffer for a single iteration; the overlay
    renderer draws on it in place before it is displayed.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    # 1-based count of frames read since the source was opened
    frame_index: int = 0
    # source_id of the producer, or an image path for still-image sources
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        height, width = frame.shape[:2]
        return cls(frame, width, height, timestamp, frame_index, source)
