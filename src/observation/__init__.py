"""
Observation layer: where frames come from.

Video sources implement the ObservationSource interface and return FrameData
objects; still images are loaded straight into numpy arrays.
"""

from .base import ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig, create_source_from_config
from .capture import capture_frame
from .image_source import read_image, decode_image

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
    "capture_frame",
    "read_image",
    "decode_image",
]
