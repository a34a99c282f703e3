"""
Detection models for decoded detector output.

Boxes are axis-aligned rectangles in frame-pixel coordinates stored as
(left, top, width, height), the layout the decoder produces directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Box:
    """
    An axis-aligned box in pixel coordinates.

    Attributes:
        left: Left edge x coordinate. May be negative near a frame edge.
        top: Top edge y coordinate. May be negative near a frame edge.
        width: Box width in pixels (non-negative).
        height: Box height in pixels (non-negative).
    """
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def clamped(self, frame_width: int, frame_height: int) -> Tuple[int, int, int, int]:
        """
        Return integer (x1, y1, x2, y2) clipped to the frame bounds.

        Used by the renderer only; candidates keep their unclamped geometry.
        A box lying wholly outside the frame comes back with x2 <= x1 or
        y2 <= y1.
        """
        x1 = int(min(max(self.left, 0), frame_width - 1))
        y1 = int(min(max(self.top, 0), frame_height - 1))
        x2 = int(min(max(self.right, 0), frame_width - 1))
        y2 = int(min(max(self.bottom, 0), frame_height - 1))
        return (x1, y1, x2, y2)


@dataclass(frozen=True)
class Candidate:
    """
    A single decoded detection.

    Attributes:
        class_id: Index of the highest-scoring class.
        confidence: Highest class score (0-1).
        box: Bounding box in frame-pixel coordinates.
        class_name: Optional human-readable label for class_id.
    """
    class_id: int
    confidence: float
    box: Box
    class_name: Optional[str] = None

    @property
    def label(self) -> str:
        name = self.class_name if self.class_name is not None else str(self.class_id)
        return f"{name}: {self.confidence:.2f}"


@dataclass(frozen=True)
class DetectionSet:
    """
    Candidates surviving suppression for one frame, in selection order.
    """
    candidates: Tuple[Candidate, ...] = field(default_factory=tuple)
    frame_index: int = 0

    @classmethod
    def from_candidates(cls, candidates: Sequence[Candidate], frame_index: int = 0) -> "DetectionSet":
        return cls(candidates=tuple(candidates), frame_index=frame_index)

    def __len__(self) -> int:
        return len(self.candidates)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self.candidates)
