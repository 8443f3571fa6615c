"""
Still image loading.

Images are returned as BGR (or BGRA when the file carries alpha) uint8
arrays, the same layout video frames use.
"""

from __future__ import annotations

import os

import cv2
import numpy as np

from models.errors import InvalidImageSource


def read_image(path: str) -> np.ndarray:
    """Read an image file. Raises InvalidImageSource if it cannot be decoded."""
    if not os.path.isfile(path):
        raise InvalidImageSource(f"Image not found: {path}")
    image = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if image is None or image.size == 0:
        raise InvalidImageSource(f"Unable to decode image: {path}")
    return image


def decode_image(data: bytes) -> np.ndarray:
    """Decode an encoded image (JPEG, PNG, ...) held in memory."""
    if not data:
        raise InvalidImageSource("Empty image payload")
    buf = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if image is None or image.size == 0:
        raise InvalidImageSource("Unable to decode image payload")
    return image
