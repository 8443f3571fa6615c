"""
Still-image detection pipeline.

preprocess -> network -> NMS -> decode -> render -> callback, each stage
finishing before the next starts.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

import numpy as np

from inference.backend import InferenceBackend
from inference.invoker import run_inference
from models.config import DetectionConfig
from models.detection import Box
from rendering.canvas import Canvas
from rendering.renderer import render_boxes
from .decoder import decode_boxes
from .preprocess import preprocess


def detect_image(
    image: np.ndarray,
    canvas: Optional[Canvas],
    backend: InferenceBackend,
    topk: int,
    iou_threshold: float,
    score_threshold: float,
    input_shape: Sequence[int],
    callback: Optional[Callable[[], None]] = None,
    labels: Optional[Sequence[str]] = None,
    clamp_boxes: bool = False,
) -> List[Box]:
    """
    Detect objects in one image and draw them on the canvas.

    Args:
        image: Source image (gray, BGR or BGRA uint8).
        canvas: Surface to render on; None skips rendering.
        backend: Inference backend providing net() and nms().
        topk: Maximum number of boxes kept by NMS.
        iou_threshold: NMS overlap threshold.
        score_threshold: NMS minimum score.
        input_shape: Model input shape [batch, channels, height, width].
        callback: Called once after rendering completes.
        labels: Optional label table for class names.
        clamp_boxes: Clip boxes to the image bounds.

    Returns:
        The decoded boxes, in source pixel coordinates.

    Raises:
        InvalidImageSource: The image is unusable; nothing is sent to the backend.
        InferenceBackendError: The network or NMS pass failed.
    """
    model_height, model_width = int(input_shape[2]), int(input_shape[3])
    tensor, x_ratio, y_ratio = preprocess(image, model_width, model_height)

    selected = run_inference(backend, tensor, topk, iou_threshold, score_threshold)

    height, width = image.shape[:2]
    boxes = decode_boxes(
        selected,
        x_ratio,
        y_ratio,
        max_boxes=topk,
        labels=labels,
        clamp_to=(width, height) if clamp_boxes else None,
    )

    if canvas is not None:
        canvas.resize(width, height)
        render_boxes(canvas, boxes, labels=labels)
    if callback is not None:
        callback()
    return boxes


class Detector:
    """Binds a backend, thresholds and label table for repeated detect_image calls."""

    def __init__(
        self,
        backend: InferenceBackend,
        config: Optional[DetectionConfig] = None,
        labels: Optional[Sequence[str]] = None,
        input_shape: Optional[Sequence[int]] = None,
    ):
        self.backend = backend
        self.config = config or DetectionConfig()
        self.labels = list(labels) if labels is not None else None
        self.input_shape = list(input_shape) if input_shape is not None else list(backend.input_shape)
        if len(self.input_shape) != 4:
            raise ValueError(f"input_shape must be [batch, channels, height, width], got {self.input_shape}")
        logging.info(
            f"Detector initialized: input_shape={self.input_shape}, topk={self.config.topk}, "
            f"iou={self.config.iou_threshold}, score={self.config.score_threshold}"
        )

    def detect(
        self,
        image: np.ndarray,
        canvas: Optional[Canvas] = None,
        callback: Optional[Callable[[], None]] = None,
    ) -> List[Box]:
        return detect_image(
            image,
            canvas,
            self.backend,
            self.config.topk,
            self.config.iou_threshold,
            self.config.score_threshold,
            self.input_shape,
            callback=callback,
            labels=self.labels,
            clamp_boxes=self.config.clamp_boxes,
        )
