"""
Greedy non-maximum suppression over decoded candidates.
"""

from __future__ import annotations

from typing import List, Sequence

from models.detection import Box, Candidate


def iou(a: Box, b: Box) -> float:
    """
    Calculate Intersection over Union (IoU) between two boxes.

    Returns:
        IoU value between 0 and 1; 0 when the boxes do not overlap.
    """
    x1 = max(a.left, b.left)
    y1 = max(a.top, b.top)
    x2 = min(a.right, b.right)
    y2 = min(a.bottom, b.bottom)

    if x2 <= x1 or y2 <= y1:
        return 0.0

    intersection = (x2 - x1) * (y2 - y1)
    union = a.area + b.area - intersection
    if union <= 0:
        return 0.0

    return intersection / union


def suppress(
    candidates: Sequence[Candidate],
    iou_threshold: float = 0.4,
    score_threshold: float = 0.5,
    class_aware: bool = False,
) -> List[Candidate]:
    """
    Keep the highest-confidence candidate of every overlapping group.

    Candidates scoring below score_threshold are dropped first. The rest are
    visited by descending confidence, ties in input order. Each kept
    candidate removes every remaining one whose IoU with it exceeds
    iou_threshold. By default overlap is checked regardless of class; with
    class_aware=True only candidates of the same class suppress each other.

    Returns the kept candidates (the same objects) in selection order.
    """
    remaining = sorted(
        (c for c in candidates if c.confidence >= score_threshold),
        key=lambda c: -c.confidence,
    )

    kept: List[Candidate] = []
    while remaining:
        best = remaining.pop(0)
        kept.append(best)
        remaining = [
            c for c in remaining
            if (class_aware and c.class_id != best.class_id)
            or iou(best.box, c.box) <= iou_threshold
        ]

    return kept
