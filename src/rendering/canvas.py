"""
Output surface the renderer draws on.

A Canvas is a transparent BGRA overlay sized to the image being annotated,
kept separate from the frame the way a drawing canvas sits on top of a
video element. compose() blends it over a frame for display, recording, or
streaming.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import numpy as np


class Canvas:
    def __init__(self, width: int = 0, height: int = 0):
        self._lock = threading.Lock()
        self.pixels = np.zeros((max(height, 0), max(width, 0), 4), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def is_blank(self) -> bool:
        return not self.pixels[..., 3].any()

    def resize(self, width: int, height: int) -> None:
        """Match the canvas to an image size. Resizing discards the drawing."""
        with self._lock:
            if (width, height) != (self.width, self.height):
                self.pixels = np.zeros((height, width, 4), dtype=np.uint8)

    def clear(self) -> None:
        with self._lock:
            self.pixels[:] = 0

    @contextmanager
    def drawing(self) -> Iterator[np.ndarray]:
        """Hold the canvas lock and yield the pixel buffer for in-place drawing."""
        with self._lock:
            yield self.pixels

    def snapshot(self) -> np.ndarray:
        with self._lock:
            return self.pixels.copy()

    def compose(self, frame: np.ndarray, overlay: Optional[np.ndarray] = None) -> np.ndarray:
        """Return a BGR copy of frame with the overlay alpha-blended on top."""
        overlay = self.snapshot() if overlay is None else overlay
        out = frame[..., :3].copy() if frame.ndim == 3 else np.dstack([frame] * 3)
        if overlay.shape[:2] != out.shape[:2] or not overlay[..., 3].any():
            return out

        alpha = overlay[..., 3:4].astype(np.float32) / 255.0
        blended = overlay[..., :3].astype(np.float32) * alpha + out.astype(np.float32) * (1.0 - alpha)
        return blended.astype(np.uint8)
