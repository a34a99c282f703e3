"""
Detector output post-processing: decoding and suppression.
"""

from .decoder import decode
from .suppression import iou, suppress

__all__ = ["decode", "iou", "suppress"]
