"""
Inference invocation: forward pass, then NMS, in that order.
"""

from __future__ import annotations

import numpy as np

from models.errors import InferenceBackendError
from .backend import InferenceBackend


def build_config_tensor(topk: int, iou_threshold: float, score_threshold: float) -> np.ndarray:
    """The NMS graph's config input: [topk, iou_threshold, score_threshold]."""
    return np.array([topk, iou_threshold, score_threshold], dtype=np.float32)


def run_inference(
    backend: InferenceBackend,
    tensor: np.ndarray,
    topk: int,
    iou_threshold: float,
    score_threshold: float,
) -> np.ndarray:
    """
    Run the network and NMS passes and return the selected rows.

    Returns:
        Array shaped [1, N, row_width], N <= topk. Row width comes from the
        model head and is not assumed here.

    Raises:
        InferenceBackendError: If either pass fails or NMS returns a tensor
            that is not rank 3.
    """
    config = build_config_tensor(topk, iou_threshold, score_threshold)
    try:
        raw = backend.net(tensor)
        selected = backend.nms(raw, config)
    except InferenceBackendError:
        raise
    except Exception as e:
        raise InferenceBackendError(f"Inference failed: {e}") from e

    selected = np.asarray(selected)
    if selected.ndim != 3:
        raise InferenceBackendError(
            f"NMS output must be [1, N, row_width], got shape {selected.shape}"
        )
    return selected
