"""
Decoding of raw detector output into candidate detections.

Each tensor is read as rows of
[center_x, center_y, width, height, objectness, class_score_0, ...]
with geometry given as fractions of the frame size.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from models.detection import Box, Candidate
from runtime.errors import DecodeError

# Box geometry (4) plus objectness (1)
ROW_PREFIX = 5


def _as_rows(raw: np.ndarray, num_classes: Optional[int], tensor_index: int) -> np.ndarray:
    """Reshape one output tensor to (num_predictions, 5 + num_classes)."""
    arr = np.asarray(raw, dtype=float)
    if arr.size == 0:
        return arr.reshape(0, ROW_PREFIX + (num_classes or 1))

    if num_classes is not None:
        cols = ROW_PREFIX + num_classes
        # Flat buffers only need to divide evenly into rows
        fits = arr.size % cols == 0 if arr.ndim == 1 else arr.shape[-1] == cols
        if not fits:
            raise DecodeError(
                f"Output {tensor_index}: shape {arr.shape} does not fit rows of {cols} values"
            )
        return arr.reshape(-1, cols)

    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    rows = arr.reshape(-1, arr.shape[-1])
    if rows.shape[1] <= ROW_PREFIX:
        raise DecodeError(
            f"Output {tensor_index}: rows of {rows.shape[1]} values carry no class scores"
        )
    return rows


def decode(
    raw_outputs: Sequence[np.ndarray],
    frame_width: int,
    frame_height: int,
    confidence_threshold: float = 0.5,
    num_classes: Optional[int] = None,
    class_names: Optional[Sequence[str]] = None,
) -> List[Candidate]:
    """
    Convert raw output tensors into candidates in frame-pixel coordinates.

    A row's confidence is its maximum class score; the objectness value is
    not used. Rows with confidence <= confidence_threshold are dropped.
    Candidates keep the order of the input rows.

    Args:
        raw_outputs: Output tensors from the inference adapter.
        frame_width: Width of the source frame in pixels.
        frame_height: Height of the source frame in pixels.
        confidence_threshold: Rows must score strictly above this.
        num_classes: Expected number of classes per row, if known.
        class_names: Optional labels indexed by class id.

    Raises:
        DecodeError: If a tensor does not match the expected row layout.
    """
    candidates: List[Candidate] = []

    for tensor_index, raw in enumerate(raw_outputs):
        rows = _as_rows(raw, num_classes, tensor_index)
        if len(rows) == 0:
            continue

        scores = rows[:, ROW_PREFIX:]
        class_ids = np.argmax(scores, axis=1)
        confidences = scores[np.arange(len(rows)), class_ids]

        for i in np.flatnonzero(confidences > confidence_threshold):
            row = rows[i]
            class_id = int(class_ids[i])

            center_x = int(row[0] * frame_width)
            center_y = int(row[1] * frame_height)
            width = max(int(row[2] * frame_width), 0)
            height = max(int(row[3] * frame_height), 0)

            class_name = None
            if class_names is not None and class_id < len(class_names):
                class_name = class_names[class_id]

            candidates.append(Candidate(
                class_id=class_id,
                confidence=float(confidences[i]),
                box=Box(
                    left=int(center_x - width / 2),
                    top=int(center_y - height / 2),
                    width=width,
                    height=height,
                ),
                class_name=class_name,
            ))

    return candidates
