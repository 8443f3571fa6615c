"""
Box rendering.

Draws each box with a class-colored outline, a translucent fill, and a
"label - score%" tag above it.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import cv2

from models.detection import Box
from models.labels import label_name
from .canvas import Canvas

# Ultralytics palette, RGB hex
PALETTE = [
    "FF3838", "FF9D97", "FF701F", "FFB21D", "CFD231", "48F90A", "92CC17",
    "3DDB86", "1A9334", "00D4BB", "2C99A8", "00C2FF", "344593", "6473FF",
    "0018EC", "8438FF", "520085", "CB38FF", "FF95C8", "FF37C7",
]

FONT = cv2.FONT_HERSHEY_SIMPLEX


def class_color(label: int) -> Tuple[int, int, int]:
    """BGR color for a class id."""
    hex_color = PALETTE[label % len(PALETTE)]
    r, g, b = (int(hex_color[i:i + 2], 16) for i in (0, 2, 4))
    return (b, g, r)


def render_boxes(
    canvas: Canvas,
    boxes: List[Box],
    labels: Optional[Sequence[str]] = None,
    fill_alpha: int = 50,
) -> None:
    """Clear the canvas and draw boxes on it."""
    canvas.clear()
    if canvas.width == 0 or canvas.height == 0:
        return

    line_width = max(min(canvas.width, canvas.height) // 200, 2)
    font_scale = max(line_width / 4, 0.5)

    with canvas.drawing() as pixels:
        for box in boxes:
            color = class_color(box.label)
            name = box.class_name or label_name(labels, box.label)
            text = f"{name} - {box.probability * 100:.1f}%"
            x1, y1, x2, y2 = box.as_int_xyxy()

            # fill only untouched pixels so earlier outlines stay opaque
            region = pixels[max(y1, 0):max(y2, 0), max(x1, 0):max(x2, 0)]
            region[region[..., 3] == 0] = (*color, fill_alpha)

            cv2.rectangle(pixels, (x1, y1), (x2, y2), (*color, 255), line_width)

            (tw, th), baseline = cv2.getTextSize(text, FONT, font_scale, 1)
            ty = y1 - th - baseline - 2 if y1 - th - baseline - 2 > 0 else y1
            cv2.rectangle(pixels, (x1 - 1, ty), (x1 + tw + 4, ty + th + baseline + 2), (*color, 255), -1)
            cv2.putText(
                pixels, text, (x1 + 2, ty + th + 1), FONT, font_scale,
                (255, 255, 255, 255), 1, cv2.LINE_AA,
            )
