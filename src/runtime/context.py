from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from inference import InferenceAdapter, create_adapter_from_config
from models.config import Config
from observation import ObservationSource, create_source_from_config
from pipeline.overlay import OverlayRenderer


@dataclass
class DetectionSession:
    """Owns the frame source, inference adapter and display for one loop run; avoids global singletons."""

    config: Config
    source: ObservationSource
    adapter: InferenceAdapter
    renderer: OverlayRenderer


def create_session_from_config(config: Config, display: Optional[bool] = None) -> DetectionSession:
    """
    Build a session from typed config.

    The model is loaded here, once, before any frame is read. The source is
    created but not opened; the loop opens it.

    Raises:
        ModelLoadError: If the model cannot be loaded.
    """
    adapter = create_adapter_from_config(config.detection)
    source = create_source_from_config(config.camera.to_dict(), source_id="main-camera")
    enabled = config.display.enabled if display is None else display
    renderer = OverlayRenderer(window_name=config.display.window_name, enabled=enabled)

    logging.info(
        f"Session ready: backend={config.detection.backend}, "
        f"camera={config.camera.backend}, display={'on' if enabled else 'off'}"
    )
    return DetectionSession(config=config, source=source, adapter=adapter, renderer=renderer)
