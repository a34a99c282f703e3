"""
Inference adapters wrapping pretrained networks.
"""

from .backend import InferenceAdapter, load_class_names
from .dnn_backend import (
    DarknetConfig,
    DarknetDetectorAdapter,
    TensorflowClassifierAdapter,
    TensorflowClassifierConfig,
    create_adapter_from_config,
)

__all__ = [
    "InferenceAdapter",
    "load_class_names",
    "DarknetConfig",
    "DarknetDetectorAdapter",
    "TensorflowClassifierAdapter",
    "TensorflowClassifierConfig",
    "create_adapter_from_config",
]
