"""
OpenCV-based observation source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- RTSP/IP cameras (device_id as str URL)
- Video files (device_id as file path)

A failed read is reported as end of stream. Reconnecting to a dropped
camera is left to the operator.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

import cv2

from models.frame import FrameData
from runtime.errors import DeviceUnavailable
from .base import ObservationSource, ObservationConfig


def describe_device(device_id: Union[int, str]) -> str:
    """Printable device identifier with any URL credentials removed."""
    if isinstance(device_id, int):
        return f"camera:{device_id}"
    parsed = urlparse(device_id)
    if parsed.username or parsed.password:
        netloc = parsed.hostname or ""
        if parsed.port:
            netloc += f":{parsed.port}"
        return parsed._replace(netloc=netloc).geturl()
    return device_id


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based observation sources.

    Attributes:
        device_id: Camera index (int), RTSP URL (str), or file path (str).
        buffer_size: OpenCV capture buffer size (reduces latency for live feeds).
        max_retries: Maximum attempts to open the device before giving up.
        retry_delay: Seconds to wait between open attempts.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_retries: int = 3
    retry_delay: float = 1.0

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """
        Adapter: Create OpenCVSourceConfig from a camera config dict.

        Args:
            camera_cfg: Camera configuration dict (from config.yaml).
            source_id: Identifier for this source.
        """
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=camera_cfg.get("max_retries", 3),
        )


class OpenCVSource(ObservationSource):
    """
    OpenCV-based observation source for cameras and video files.

    Wraps cv2.VideoCapture to provide frames as FrameData objects.

    Example:
        config = OpenCVSourceConfig(device_id=0, resolution=(1280, 720))
        source = OpenCVSource(config)
        source.open()
        frame_data = source.read()
        source.close()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_rtsp(self) -> bool:
        """Check if this is an RTSP stream."""
        return isinstance(self.device_id, str) and (
            self.device_id.startswith("rtsp://") or
            self.device_id.startswith("rtsps://")
        )

    @property
    def is_file(self) -> bool:
        """Check if this is a video file."""
        return (
            isinstance(self.device_id, str) and
            not self.is_rtsp and
            os.path.exists(self.device_id)
        )

    def open(self) -> None:
        """Open the video source, retrying up to max_retries times."""
        if self._is_open:
            return

        attempts = max(1, self._opencv_config.max_retries)
        for attempt in range(1, attempts + 1):
            self._cap = cv2.VideoCapture(self.device_id)
            if self._cap.isOpened():
                break
            self._cap.release()
            self._cap = None
            if attempt < attempts:
                logging.warning(
                    f"Failed to open device {describe_device(self.device_id)} "
                    f"(attempt {attempt}/{attempts}), retrying..."
                )
                time.sleep(self._opencv_config.retry_delay)
        else:
            raise DeviceUnavailable(
                f"Failed to open device {describe_device(self.device_id)} after {attempts} attempts"
            )

        self._configure_capture()
        self._is_open = True
        self._frame_index = 0

        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={describe_device(self.device_id)}, resolution={self._opencv_config.resolution}"
        )

    def _configure_capture(self) -> None:
        """Apply resolution/fps settings for USB cameras (not streams/files)."""
        if not isinstance(self.device_id, int):
            return

        if self._opencv_config.resolution:
            w, h = self._opencv_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        if self._opencv_config.fps:
            self._cap.set(cv2.CAP_PROP_FPS, self._opencv_config.fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._opencv_config.buffer_size)

        actual_w = self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)
        actual_h = self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
        actual_fps = self._cap.get(cv2.CAP_PROP_FPS)
        logging.info(
            f"Camera actual settings - Resolution: ({actual_w}x{actual_h}), FPS: {actual_fps}"
        )

    def read(self) -> Optional[FrameData]:
        """Read the next frame, or None at end of stream."""
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            if self.is_file:
                logging.info("End of video file reached")
            else:
                logging.info(f"No frame from {describe_device(self.device_id)}, treating as end of stream")
            return None

        self._frame_index += 1
        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        """Close the video source and release resources."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._is_open:
            logging.info(f"OpenCVSource closed: source_id={self.source_id}")
        self._is_open = False
