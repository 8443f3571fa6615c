"""
Rendering of detections onto an overlay canvas.
"""

from .canvas import Canvas
from .renderer import render_boxes, class_color

__all__ = ["Canvas", "render_boxes", "class_color"]
