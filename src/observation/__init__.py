"""
Observation layer for pluggable frame sources.

This layer abstracts the source of frames (camera, video file, image files)
from the detection loop. Each source implements the ObservationSource
interface and returns FrameData objects.
"""

from typing import Any, Dict

from .base import ObservationSource, ObservationConfig
from .image_source import ImageFileSource, ImageFileSourceConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "camera") -> ObservationSource:
    """
    Factory: build an observation source from the camera config section.

    camera.backend selects "opencv" (default) or "images".
    """
    backend = camera_cfg.get("backend", "opencv")
    if backend == "images":
        return ImageFileSource(ImageFileSourceConfig.from_camera_config(camera_cfg, source_id=source_id))
    if backend == "opencv":
        return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))
    raise ValueError(f"Unknown camera backend: {backend}")


__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "ImageFileSource",
    "ImageFileSourceConfig",
    "create_source_from_config",
]
