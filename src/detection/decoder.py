"""
Decode NMS-selected rows into boxes in source pixel coordinates.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from models.detection import Box
from models.errors import InferenceBackendError
from models.labels import label_name


def decode_boxes(
    selected: np.ndarray,
    x_ratio: float,
    y_ratio: float,
    max_boxes: Optional[int] = None,
    labels: Optional[Sequence[str]] = None,
    clamp_to: Optional[Tuple[int, int]] = None,
) -> List[Box]:
    """
    Turn [1, N, 4 + num_classes] rows of (cx, cy, w, h, scores...) into Boxes.

    Every row is trusted as a detection: thresholds were applied by NMS.
    The class is the first index holding the highest score.

    Args:
        selected: NMS output.
        x_ratio: Horizontal model-space -> source-space ratio.
        y_ratio: Vertical model-space -> source-space ratio.
        max_boxes: Upper bound on returned boxes (topk).
        labels: Optional label table used to fill class_name.
        clamp_to: Optional (width, height) of the source to clip boxes into.
    """
    selected = np.asarray(selected)
    if selected.ndim != 3:
        raise InferenceBackendError(f"Expected [1, N, row_width] rows, got shape {selected.shape}")

    rows = selected.reshape(-1, selected.shape[2]) if selected.size else np.empty((0, selected.shape[2]))
    if rows.shape[0] and rows.shape[1] < 5:
        raise InferenceBackendError(f"Rows need 4 box values and at least one score, got width {rows.shape[1]}")

    if max_boxes is not None and rows.shape[0] > max_boxes:
        logging.warning(f"NMS returned {rows.shape[0]} rows, keeping the first {max_boxes}")
        rows = rows[:max_boxes]

    boxes: List[Box] = []
    for row in rows:
        cx, cy, w, h = (float(v) for v in row[:4])
        scores = row[4:]
        label = int(np.argmax(scores))
        score = float(scores[label])

        box = Box(
            label=label,
            probability=score,
            bounding=(
                (cx - 0.5 * w) * x_ratio,
                (cy - 0.5 * h) * y_ratio,
                w * x_ratio,
                h * y_ratio,
            ),
            class_name=label_name(labels, label) if labels is not None else None,
        )
        if clamp_to is not None:
            box = box.clamped(*clamp_to)
        boxes.append(box)

    return boxes
