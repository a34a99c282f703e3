"""
Pipeline module for live detection.

The pipeline orchestrates the per-frame flow:
- Frame acquisition from observation sources
- Inference, decoding and suppression
- Overlay rendering, display and cancellation
"""

from .engine import DetectionLoop, LoopState, LoopStats
from .overlay import OverlayRenderer

__all__ = [
    "DetectionLoop",
    "LoopState",
    "LoopStats",
    "OverlayRenderer",
]
