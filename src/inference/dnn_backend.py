"""
OpenCV DNN inference adapters.

DarknetDetectorAdapter runs a YOLO-style network (topology .cfg plus
.weights) and forwards every unconnected output layer.

TensorflowClassifierAdapter runs a frozen TensorFlow image classifier and
reports its class scores as a single full-frame row, so classifier output
flows through the same decode/suppress path as detector output.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np

from runtime.errors import InferenceError, ModelLoadError
from .backend import InferenceAdapter, load_class_names


def _require_file(path: str, kind: str) -> None:
    if not path:
        raise ModelLoadError(f"No {kind} file configured")
    if not os.path.exists(path):
        raise ModelLoadError(f"{kind} file not found: {path}")


@dataclass(frozen=True)
class DarknetConfig:
    model_config: str
    model_weights: str
    input_size: Tuple[int, int] = (416, 416)
    class_names_file: Optional[str] = None


class DarknetDetectorAdapter(InferenceAdapter):
    def __init__(self, cfg: DarknetConfig):
        self.cfg = cfg
        _require_file(cfg.model_config, "Network config")
        _require_file(cfg.model_weights, "Weights")

        try:
            self._net = cv2.dnn.readNetFromDarknet(cfg.model_config, cfg.model_weights)
        except cv2.error as e:
            raise ModelLoadError(f"Failed to load Darknet model {cfg.model_config}: {e}") from e

        self._output_names = list(self._net.getUnconnectedOutLayersNames())
        self.class_names = load_class_names(cfg.class_names_file)
        self.num_classes = len(self.class_names) if self.class_names is not None else None

        logging.info(
            f"Darknet detector loaded: config={cfg.model_config}, "
            f"outputs={self._output_names}, input_size={cfg.input_size}"
        )

    def infer(self, frame: np.ndarray) -> List[np.ndarray]:
        try:
            blob = cv2.dnn.blobFromImage(
                frame, 1 / 255.0, self.cfg.input_size, swapRB=True, crop=False
            )
            self._net.setInput(blob)
            outputs = self._net.forward(self._output_names)
        except cv2.error as e:
            raise InferenceError(f"Darknet forward pass failed: {e}") from e

        return [np.asarray(out) for out in outputs]


@dataclass(frozen=True)
class TensorflowClassifierConfig:
    model_weights: str
    model_config: Optional[str] = None
    input_size: Tuple[int, int] = (224, 224)
    mean_offset: float = 117.0
    class_names_file: Optional[str] = None


class TensorflowClassifierAdapter(InferenceAdapter):
    full_frame = True

    def __init__(self, cfg: TensorflowClassifierConfig):
        self.cfg = cfg
        _require_file(cfg.model_weights, "Model")
        if cfg.model_config:
            _require_file(cfg.model_config, "Graph config")

        try:
            if cfg.model_config:
                self._net = cv2.dnn.readNetFromTensorflow(cfg.model_weights, cfg.model_config)
            else:
                self._net = cv2.dnn.readNetFromTensorflow(cfg.model_weights)
        except cv2.error as e:
            raise ModelLoadError(f"Failed to load TensorFlow model {cfg.model_weights}: {e}") from e

        self.class_names = load_class_names(cfg.class_names_file)
        self.num_classes = len(self.class_names) if self.class_names is not None else None

        logging.info(
            f"TensorFlow classifier loaded: model={cfg.model_weights}, input_size={cfg.input_size}"
        )

    def infer(self, frame: np.ndarray) -> List[np.ndarray]:
        offset = self.cfg.mean_offset
        try:
            blob = cv2.dnn.blobFromImage(
                frame, 1.0, self.cfg.input_size, (offset, offset, offset), swapRB=True, crop=False
            )
            self._net.setInput(blob)
            scores = np.asarray(self._net.forward()).reshape(-1)
        except cv2.error as e:
            raise InferenceError(f"TensorFlow forward pass failed: {e}") from e

        # Whole frame: centered box spanning the image, objectness 1
        row = np.concatenate([np.array([0.5, 0.5, 1.0, 1.0, 1.0], dtype=np.float32),
                              scores.astype(np.float32)])
        return [row.reshape(1, -1)]


def create_adapter_from_config(detection_cfg) -> InferenceAdapter:
    """
    Factory: load the configured model once, before the loop starts.

    Args:
        detection_cfg: models.config.DetectorConfig.

    Raises:
        ModelLoadError: If the backend is unknown or the model cannot be loaded.
    """
    backend = detection_cfg.backend
    if backend == "darknet":
        return DarknetDetectorAdapter(DarknetConfig(
            model_config=detection_cfg.model_config,
            model_weights=detection_cfg.model_weights,
            input_size=tuple(detection_cfg.effective_input_size),
            class_names_file=detection_cfg.class_names_file,
        ))
    if backend == "tensorflow":
        return TensorflowClassifierAdapter(TensorflowClassifierConfig(
            model_weights=detection_cfg.model_weights,
            model_config=detection_cfg.model_config or None,
            input_size=tuple(detection_cfg.effective_input_size),
            mean_offset=detection_cfg.mean_offset,
            class_names_file=detection_cfg.class_names_file,
        ))
    raise ModelLoadError(f"Unknown detection backend: {backend}")
