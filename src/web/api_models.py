from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from models.detection import Box


class BoxModel(BaseModel):
    label: int
    class_name: Optional[str] = None
    probability: float
    bounding: List[float] = Field(..., description="[x, y, width, height] in source pixels")

    @classmethod
    def from_box(cls, box: Box) -> "BoxModel":
        return cls(
            label=box.label,
            class_name=box.class_name,
            probability=box.probability,
            bounding=list(box.bounding),
        )


class DetectResponse(BaseModel):
    width: int
    height: int
    inference_ms: float
    boxes: List[BoxModel]


class ModelInfoResponse(BaseModel):
    input_shape: List[int]
    topk: int
    iou_threshold: float
    score_threshold: float
    num_labels: Optional[int]


class StatusResponse(BaseModel):
    pump_state: str = Field(..., description="running|stopped|absent")
    frames: int
    boxes: int
    dropped_frames: int
    fps: float
    last_frame_age: Optional[float]
    uptime_seconds: int
