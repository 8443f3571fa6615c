"""
Image preprocessing for YOLO-style models.

The source is padded with black on the bottom and right only, so the
top-left origin survives and a box in the padded square maps back to the
source by a plain per-axis scale. The ratios are computed against the padded
side before resizing: resize and padding are both undone by multiplying
model-space coordinates with (x_ratio, y_ratio).
"""

from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

from models.errors import InvalidImageSource


def to_bgr(source: np.ndarray) -> np.ndarray:
    """Convert a gray, BGR or BGRA image to 3-channel BGR."""
    if not isinstance(source, np.ndarray):
        raise InvalidImageSource(f"Expected a numpy image, got {type(source).__name__}")
    if source.ndim not in (2, 3) or source.shape[0] == 0 or source.shape[1] == 0:
        raise InvalidImageSource(f"Degenerate image shape {source.shape}")
    if source.dtype != np.uint8:
        raise InvalidImageSource(f"Expected uint8 pixels, got {source.dtype}")

    channels = 1 if source.ndim == 2 else source.shape[2]
    if channels == 1:
        return cv2.cvtColor(source, cv2.COLOR_GRAY2BGR)
    if channels == 3:
        return source
    if channels == 4:
        return cv2.cvtColor(source, cv2.COLOR_BGRA2BGR)
    raise InvalidImageSource(f"Unsupported channel count {channels}")


def preprocess(
    source: np.ndarray,
    model_width: int,
    model_height: int,
) -> Tuple[np.ndarray, float, float]:
    """
    Build the model input tensor for an image.

    Args:
        source: Image as a uint8 numpy array (gray, BGR or BGRA).
        model_width: Model input width.
        model_height: Model input height.

    Returns:
        (tensor, x_ratio, y_ratio) where tensor is float32 [1, 3, model_height,
        model_width] in RGB order with values in [0, 1].

    Raises:
        InvalidImageSource: If the image is missing or has a zero dimension.
    """
    if model_width <= 0 or model_height <= 0:
        raise ValueError(f"Model input size must be positive, got {model_width}x{model_height}")

    bgr = to_bgr(source)
    rows, cols = bgr.shape[:2]

    max_size = max(rows, cols)
    x_pad, x_ratio = max_size - cols, max_size / cols
    y_pad, y_ratio = max_size - rows, max_size / rows
    padded = cv2.copyMakeBorder(bgr, 0, y_pad, 0, x_pad, cv2.BORDER_CONSTANT, value=(0, 0, 0))

    tensor = cv2.dnn.blobFromImage(
        padded,
        scalefactor=1 / 255.0,
        size=(model_width, model_height),
        mean=(0, 0, 0),
        swapRB=True,
        crop=False,
    )
    return tensor, x_ratio, y_ratio
