"""
Detection module: preprocessing, box decoding, and the still-image pipeline.
"""

from .preprocess import preprocess
from .decoder import decode_boxes
from .detector import Detector, detect_image

__all__ = ['preprocess', 'decode_boxes', 'Detector', 'detect_image']
