"""
Class label tables.

YOLO models exported from the COCO checkpoints use the 80 COCO classes in
this order. A custom model can ship its own table as YAML or JSON (a list of
names, or a mapping of class id to name).
"""

from __future__ import annotations

import json
import os
from typing import Dict, List, Optional, Sequence, Union

import yaml

COCO_LABELS: List[str] = [
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train",
    "truck", "boat", "traffic light", "fire hydrant", "stop sign",
    "parking meter", "bench", "bird", "cat", "dog", "horse", "sheep", "cow",
    "elephant", "bear", "zebra", "giraffe", "backpack", "umbrella", "handbag",
    "tie", "suitcase", "frisbee", "skis", "snowboard", "sports ball", "kite",
    "baseball bat", "baseball glove", "skateboard", "surfboard",
    "tennis racket", "bottle", "wine glass", "cup", "fork", "knife", "spoon",
    "bowl", "banana", "apple", "sandwich", "orange", "broccoli", "carrot",
    "hot dog", "pizza", "donut", "cake", "chair", "couch", "potted plant",
    "bed", "dining table", "toilet", "tv", "laptop", "mouse", "remote",
    "keyboard", "cell phone", "microwave", "oven", "toaster", "sink",
    "refrigerator", "book", "clock", "vase", "scissors", "teddy bear",
    "hair drier", "toothbrush",
]


def load_labels(path: Optional[str]) -> List[str]:
    """
    Load a label table, falling back to the COCO classes when no path is given.

    Raises:
        FileNotFoundError: If path is set but does not exist.
        ValueError: If the file is neither a list nor an id -> name mapping.
    """
    if not path:
        return list(COCO_LABELS)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Labels file not found: {path}")

    with open(path, "r") as f:
        if path.endswith(".json"):
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    # Ultralytics-style dataset yaml keeps the table under "names"
    if isinstance(data, dict) and "names" in data:
        data = data["names"]
    return _normalize(data, path)


def _normalize(data: Union[Sequence, Dict], path: str) -> List[str]:
    if isinstance(data, list):
        return [str(name) for name in data]
    if isinstance(data, dict):
        ids = sorted(int(k) for k in data)
        names = {int(k): str(v) for k, v in data.items()}
        return [names.get(i, str(i)) for i in range(ids[-1] + 1)] if ids else []
    raise ValueError(f"Unsupported labels format in {path}")


def label_name(labels: Optional[Sequence[str]], class_id: int) -> str:
    if labels is not None and 0 <= class_id < len(labels):
        return labels[class_id]
    return str(class_id)
