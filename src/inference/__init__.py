"""
Inference backends and the two-stage (network, NMS) invocation.
"""

from .backend import InferenceBackend
from .invoker import run_inference, build_config_tensor

__all__ = ["InferenceBackend", "run_inference", "build_config_tensor"]
