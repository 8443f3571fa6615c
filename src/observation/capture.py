"""
Frame capture: snapshot the frame a source is currently presenting.
"""

from __future__ import annotations

from typing import Optional

import cv2

from models.frame import FrameData
from .base import ObservationSource


def capture_frame(source: ObservationSource, scale_factor: float = 1.0) -> Optional[FrameData]:
    """
    Capture the current frame of a source into a standalone bitmap.

    The returned frame never aliases the source's buffer and is sized
    (width * scale_factor, height * scale_factor). Returns None when the
    source has no frame to give.
    """
    if scale_factor <= 0:
        raise ValueError(f"scale_factor must be positive, got {scale_factor}")

    frame_data = source.read()
    if frame_data is None:
        return None

    frame = frame_data.frame
    if scale_factor == 1:
        snapshot = frame.copy()
    else:
        w = max(1, int(round(frame_data.width * scale_factor)))
        h = max(1, int(round(frame_data.height * scale_factor)))
        snapshot = cv2.resize(frame, (w, h), interpolation=cv2.INTER_LINEAR)

    return FrameData.from_numpy(
        snapshot,
        timestamp=frame_data.timestamp,
        frame_index=frame_data.frame_index,
        source=frame_data.source,
    )
