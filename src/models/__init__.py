"""
Typed models for the detector application.
"""

from .frame import FrameData
from .detection import Box
from .errors import DetectionError, InvalidImageSource, InferenceBackendError
from .labels import COCO_LABELS, load_labels, label_name
from .config import (
    Config,
    SourceConfig,
    ModelConfig,
    DetectionConfig,
    PumpConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Box",
    # Errors
    "DetectionError",
    "InvalidImageSource",
    "InferenceBackendError",
    # Labels
    "COCO_LABELS",
    "load_labels",
    "label_name",
    # Config
    "Config",
    "SourceConfig",
    "ModelConfig",
    "DetectionConfig",
    "PumpConfig",
    "WebConfig",
]
