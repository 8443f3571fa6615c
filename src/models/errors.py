"""
Exceptions raised by the detection pipeline.
"""

from __future__ import annotations


class DetectionError(Exception):
    """Base class for pipeline failures."""


class InvalidImageSource(DetectionError):
    """The image/frame is missing, unreadable, or has a zero dimension."""


class InferenceBackendError(DetectionError):
    """The forward pass or the NMS pass failed, or returned an unusable tensor."""
