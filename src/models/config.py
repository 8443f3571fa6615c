"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class SourceConfig:
    """Video source configuration (camera index, RTSP URL, or file path)."""
    device_id: Union[int, str] = 0
    resolution: Optional[List[int]] = None
    fps: Optional[int] = None
    max_retries: int = 3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceConfig":
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution"),
            fps=d.get("fps"),
            max_retries=d.get("max_retries", 3),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "device_id": self.device_id,
            "max_retries": self.max_retries,
        }
        if self.resolution is not None:
            d["resolution"] = self.resolution
        if self.fps is not None:
            d["fps"] = self.fps
        return d


@dataclass
class ModelConfig:
    """
    ONNX model configuration.

    model is the YOLO forward graph, nms_model the standalone NMS graph that
    takes the raw output plus a [topk, iou, score] config vector.
    """
    model: str = "models/yolov8n.onnx"
    nms_model: str = "models/nms-yolov8.onnx"
    input_shape: List[int] = field(default_factory=lambda: [1, 3, 640, 640])
    providers: List[str] = field(default_factory=lambda: ["CPUExecutionProvider"])
    input_name: str = "images"
    output_name: str = "output0"
    nms_input_name: str = "detection"
    nms_config_name: str = "config"
    nms_output_name: str = "selected"
    labels_file: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        return cls(
            model=d.get("model", "models/yolov8n.onnx"),
            nms_model=d.get("nms_model", "models/nms-yolov8.onnx"),
            input_shape=list(d.get("input_shape", [1, 3, 640, 640])),
            providers=list(d.get("providers", ["CPUExecutionProvider"])),
            input_name=d.get("input_name", "images"),
            output_name=d.get("output_name", "output0"),
            nms_input_name=d.get("nms_input_name", "detection"),
            nms_config_name=d.get("nms_config_name", "config"),
            nms_output_name=d.get("nms_output_name", "selected"),
            labels_file=d.get("labels_file"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "model": self.model,
            "nms_model": self.nms_model,
            "input_shape": self.input_shape,
            "providers": self.providers,
            "input_name": self.input_name,
            "output_name": self.output_name,
            "nms_input_name": self.nms_input_name,
            "nms_config_name": self.nms_config_name,
            "nms_output_name": self.nms_output_name,
        }
        if self.labels_file is not None:
            d["labels_file"] = self.labels_file
        return d


@dataclass
class DetectionConfig:
    """NMS thresholds passed to the NMS graph, plus decoder options."""
    topk: int = 100
    iou_threshold: float = 0.45
    score_threshold: float = 0.25
    clamp_boxes: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            topk=int(d.get("topk", 100)),
            iou_threshold=float(d.get("iou_threshold", 0.45)),
            score_threshold=float(d.get("score_threshold", 0.25)),
            clamp_boxes=bool(d.get("clamp_boxes", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topk": self.topk,
            "iou_threshold": self.iou_threshold,
            "score_threshold": self.score_threshold,
            "clamp_boxes": self.clamp_boxes,
        }


@dataclass
class PumpConfig:
    """
    Video pump configuration.

    Attributes:
        fps: Target refresh rate the pump ticks at.
        scale_factor: Frame capture scale applied before detection.
        max_consecutive_failures: Frame read failures tolerated before stopping.
        stats_log_interval: Seconds between stats log messages.
        display: Show the composed output in a cv2 window.
        record: Write the composed output to a video file.
        output_dir: Directory for recorded videos.
    """
    fps: float = 30.0
    scale_factor: float = 1.0
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0
    display: bool = False
    record: bool = False
    output_dir: str = "output/video"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PumpConfig":
        return cls(
            fps=float(d.get("fps", 30.0)),
            scale_factor=float(d.get("scale_factor", 1.0)),
            max_consecutive_failures=int(d.get("max_consecutive_failures", 10)),
            stats_log_interval=float(d.get("stats_log_interval", 60.0)),
            display=bool(d.get("display", False)),
            record=bool(d.get("record", False)),
            output_dir=d.get("output_dir", "output/video"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fps": self.fps,
            "scale_factor": self.scale_factor,
            "max_consecutive_failures": self.max_consecutive_failures,
            "stats_log_interval": self.stats_log_interval,
            "display": self.display,
            "record": self.record,
            "output_dir": self.output_dir,
        }


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 5000
    max_upload_mb: float = 20.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            host=d.get("host", "0.0.0.0"),
            port=int(d.get("port", 5000)),
            max_upload_mb=float(d.get("max_upload_mb", 20.0)),
        )

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port, "max_upload_mb": self.max_upload_mb}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    source: SourceConfig = field(default_factory=SourceConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    pump: PumpConfig = field(default_factory=PumpConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/detector.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            source=SourceConfig.from_dict(d.get("source", {}) or {}),
            model=ModelConfig.from_dict(d.get("model", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            pump=PumpConfig.from_dict(d.get("pump", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/detector.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source.to_dict(),
            "model": self.model.to_dict(),
            "detection": self.detection.to_dict(),
            "pump": self.pump.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
