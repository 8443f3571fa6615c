"""
Inference backend interface.

A backend exposes the two chained computations of a detection model: the
raw network forward pass and a standalone NMS pass. Keeping NMS out of the
network graph lets one NMS graph serve model variants with different head
layouts, and lets tests stand in a fake backend returning fixture tensors.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np


class InferenceBackend(Protocol):
    @property
    def input_shape(self) -> List[int]:
        """Model input shape as [batch, channels, height, width]."""
        ...

    def net(self, tensor: np.ndarray) -> np.ndarray:
        """Forward pass: input tensor -> raw detection tensor."""
        ...

    def nms(self, detection: np.ndarray, config: np.ndarray) -> np.ndarray:
        """NMS pass: raw detections + [topk, iou, score] -> selected rows [1, N, row_width]."""
        ...
