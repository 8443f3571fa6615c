"""
Detection result models.

A Box is the only thing the pipeline hands to the outside world: the class
id, its confidence, and an (x, y, width, height) rectangle in source pixel
coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Box:
    """
    A decoded detection.

    Attributes:
        label: Class id (index of the highest class score).
        probability: Highest class score (0-1).
        bounding: (x, y, width, height) with (x, y) the top-left corner.
        class_name: Human readable label, when a label table is known.
    """
    label: int
    probability: float
    bounding: Tuple[float, float, float, float]
    class_name: Optional[str] = None

    @property
    def x(self) -> float:
        return self.bounding[0]

    @property
    def y(self) -> float:
        return self.bounding[1]

    @property
    def width(self) -> float:
        return self.bounding[2]

    @property
    def height(self) -> float:
        return self.bounding[3]

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2)."""
        x, y, w, h = self.bounding
        return (x, y, x + w, y + h)

    def as_int_xyxy(self) -> Tuple[int, int, int, int]:
        x1, y1, x2, y2 = self.as_xyxy()
        return (int(round(x1)), int(round(y1)), int(round(x2)), int(round(y2)))

    def clamped(self, width: int, height: int) -> "Box":
        """Return a copy whose rectangle is clipped to [0, width] x [0, height]."""
        x1, y1, x2, y2 = self.as_xyxy()
        x1 = min(max(x1, 0.0), float(width))
        y1 = min(max(y1, 0.0), float(height))
        x2 = min(max(x2, 0.0), float(width))
        y2 = min(max(y2, 0.0), float(height))
        return Box(
            label=self.label,
            probability=self.probability,
            bounding=(x1, y1, x2 - x1, y2 - y1),
            class_name=self.class_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "class_name": self.class_name,
            "probability": self.probability,
            "bounding": list(self.bounding),
        }
