"""
Still-image observation source.

Reads an ordered list of image files as a finite frame stream. Missing or
unreadable files are logged and skipped; the stream ends after the last path.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import cv2

from models.frame import FrameData
from runtime.errors import DeviceUnavailable
from .base import ObservationSource, ObservationConfig


@dataclass
class ImageFileSourceConfig(ObservationConfig):
    """
    Configuration for still-image sources.

    Attributes:
        image_paths: Image files to read, in order.
        hold_ms: How long each image stays on screen before the next one.
            0 waits for a key press.
    """
    image_paths: List[str] = field(default_factory=list)
    hold_ms: int = 0

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "images") -> "ImageFileSourceConfig":
        return cls(
            source_id=source_id,
            image_paths=list(camera_cfg.get("image_paths") or []),
            hold_ms=int(camera_cfg.get("image_hold_ms", 0)),
        )


class ImageFileSource(ObservationSource):
    """Observation source yielding one frame per image file."""

    def __init__(self, config: ImageFileSourceConfig):
        super().__init__(config)
        self._paths = list(config.image_paths)
        self._hold_ms = config.hold_ms
        self._pos = 0

    @property
    def poll_override_ms(self) -> Optional[int]:
        return self._hold_ms

    def open(self) -> None:
        if not self._paths:
            raise DeviceUnavailable("No image paths configured")
        self._is_open = True
        self._pos = 0
        self._frame_index = 0
        logging.info(f"ImageFileSource opened: source_id={self.source_id}, images={len(self._paths)}")

    def read(self) -> Optional[FrameData]:
        if not self._is_open:
            return None

        while self._pos < len(self._paths):
            path = self._paths[self._pos]
            self._pos += 1

            if not os.path.isfile(path):
                logging.warning(f"File not found: {path}")
                continue

            image = cv2.imread(path)
            if image is None:
                logging.warning(f"Unreadable image file: {path}")
                continue

            self._frame_index += 1
            return FrameData.from_numpy(
                image,
                timestamp=time.time(),
                frame_index=self._frame_index,
                source=path,
            )

        return None

    def close(self) -> None:
        self._is_open = False
