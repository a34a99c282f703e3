"""
Overlay rendering and display window handling.

The renderer owns the display window for the lifetime of the loop. When
display is disabled, drawing still happens but nothing is shown and no
keys are polled.
"""

from __future__ import annotations

import logging
from typing import Tuple

import cv2
import numpy as np

from models.detection import DetectionSet

# BGR palette, indexed by class id
PALETTE = [
    (0, 255, 0),
    (255, 201, 0),
    (71, 99, 255),
    (0, 215, 255),
    (255, 0, 255),
    (255, 128, 0),
    (128, 0, 255),
    (0, 128, 255),
]

TEXT_COLOR = (255, 255, 255)
FONT = cv2.FONT_HERSHEY_SIMPLEX


def color_for(class_id: int) -> Tuple[int, int, int]:
    return PALETTE[class_id % len(PALETTE)]


class OverlayRenderer:
    """Draws detection boxes onto frames and shows them in a window."""

    def __init__(self, window_name: str = "Detections", enabled: bool = True):
        self.window_name = window_name
        self.enabled = enabled
        self._window_open = False

    def draw(self, frame: np.ndarray, detections: DetectionSet) -> np.ndarray:
        """
        Draw boxes and labels onto the frame in place.

        Boxes are clipped to the frame so partially visible detections near
        an edge still render. Boxes lying wholly outside the frame are skipped.
        """
        frame_h, frame_w = frame.shape[:2]

        for det in detections:
            x1, y1, x2, y2 = det.box.clamped(frame_w, frame_h)
            if x2 <= x1 or y2 <= y1:
                continue
            color = color_for(det.class_id)
            cv2.rectangle(frame, (x1, y1), (x2, y2), color, 2)

            # Label with background, kept inside the frame at the top edge
            (tw, th), _ = cv2.getTextSize(det.label, FONT, 0.5, 1)
            label_y = max(y1, th + 6)
            cv2.rectangle(frame, (x1, label_y - th - 6), (x1 + tw + 4, label_y), color, -1)
            cv2.putText(frame, det.label, (x1 + 2, label_y - 4), FONT, 0.5, TEXT_COLOR, 1)

        return frame

    def display(self, frame: np.ndarray) -> None:
        if not self.enabled:
            return
        cv2.imshow(self.window_name, frame)
        self._window_open = True

    def poll_key(self, timeout_ms: int = 1) -> int:
        """
        Wait up to timeout_ms for a key press; 0 waits until a key is pressed.

        Returns the key code, or -1 when no key was pressed or display is off.
        """
        if not self.enabled:
            return -1
        key = cv2.waitKey(max(int(timeout_ms), 0))
        if key < 0:
            return -1
        return key & 0xFF

    def close(self) -> None:
        """Release the display window. Safe to call multiple times."""
        if not self._window_open:
            return
        try:
            cv2.destroyWindow(self.window_name)
        except cv2.error as e:
            logging.warning(f"Error closing display window: {e}")
        self._window_open = False
