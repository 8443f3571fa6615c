"""
State shared between the video pump thread and the web server.
"""

import threading
import time
from typing import Optional

import numpy as np

DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024


class SharedState:
    """Latest composed frame, the detector, and the running pump."""

    def __init__(self, max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES):
        self.frame: Optional[np.ndarray] = None
        self.frame_lock = threading.Lock()
        self.detector = None
        self.pump = None
        self.max_upload_bytes = max_upload_bytes
        self.start_time = time.time()
        self.last_frame_ts: Optional[float] = None

    def set_frame(self, frame: np.ndarray) -> None:
        with self.frame_lock:
            if frame is not None:
                self.frame = frame.copy()
                self.last_frame_ts = time.time()

    def get_frame(self) -> Optional[np.ndarray]:
        with self.frame_lock:
            if self.frame is None:
                return None
            return self.frame.copy()

    def clear_frame(self) -> None:
        """Drop the last composed frame so a stopped pump serves no stale boxes."""
        with self.frame_lock:
            self.frame = None
            self.last_frame_ts = None

    def set_detector(self, detector) -> None:
        self.detector = detector

    def set_pump(self, pump) -> None:
        self.pump = pump


# Global instance
state = SharedState()
