"""
Inference adapter interface.

Adapters return raw detector output tensors. Each tensor is read as rows of
[center_x, center_y, width, height, objectness, class_score_0, ...] with box
geometry expressed as fractions of the frame size.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Protocol

import numpy as np

from runtime.errors import ModelLoadError


class InferenceAdapter(Protocol):
    # Number of classes per row, or None when unknown until the first output
    num_classes: Optional[int]
    class_names: Optional[List[str]]
    # True when every output row covers the whole frame (classifiers)
    full_frame: bool = False

    def infer(self, frame: np.ndarray) -> List[np.ndarray]:
        ...


def load_class_names(path: Optional[str]) -> Optional[List[str]]:
    """
    Load class labels from a text file, one label per line.

    Returns None when no path is configured.
    """
    if not path:
        return None
    if not os.path.exists(path):
        raise ModelLoadError(f"Class names file not found: {path}")

    with open(path, "r") as f:
        names = [line.strip() for line in f if line.strip()]
    logging.info(f"Loaded {len(names)} class names from {path}")
    return names
