"""
ONNX Runtime inference backend.

Loads two graphs: the YOLO network (images -> output0) and the NMS graph
(detection, config -> selected).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
import onnxruntime as ort

from models.config import ModelConfig
from models.errors import InferenceBackendError
from .backend import InferenceBackend


@dataclass(frozen=True)
class OnnxYoloConfig:
    model: str
    nms_model: str
    input_shape: Sequence[int] = (1, 3, 640, 640)
    providers: Sequence[str] = field(default_factory=lambda: ("CPUExecutionProvider",))
    input_name: str = "images"
    output_name: str = "output0"
    nms_input_name: str = "detection"
    nms_config_name: str = "config"
    nms_output_name: str = "selected"

    @classmethod
    def from_model_config(cls, cfg: ModelConfig) -> "OnnxYoloConfig":
        return cls(
            model=cfg.model,
            nms_model=cfg.nms_model,
            input_shape=tuple(cfg.input_shape),
            providers=tuple(cfg.providers),
            input_name=cfg.input_name,
            output_name=cfg.output_name,
            nms_input_name=cfg.nms_input_name,
            nms_config_name=cfg.nms_config_name,
            nms_output_name=cfg.nms_output_name,
        )


class OnnxYoloBackend(InferenceBackend):
    """
    Runs the network and NMS graphs with onnxruntime.

    Session calls are serialized with a lock so still-image requests and the
    video pump can share one backend.
    """

    def __init__(self, cfg: OnnxYoloConfig):
        self.cfg = cfg
        self._lock = threading.Lock()
        providers = self._select_providers(cfg.providers)
        try:
            self._net = ort.InferenceSession(cfg.model, providers=providers)
            self._nms = ort.InferenceSession(cfg.nms_model, providers=providers)
        except Exception as e:
            raise InferenceBackendError(f"Failed to load ONNX models: {e}") from e

        self._input_shape = self._resolve_input_shape()
        logging.info(
            f"ONNX backend ready: model={cfg.model}, nms={cfg.nms_model}, "
            f"providers={self._net.get_providers()}, input_shape={self._input_shape}"
        )

    @staticmethod
    def _select_providers(requested: Sequence[str]) -> List[str]:
        available = ort.get_available_providers()
        providers = [p for p in requested if p in available]
        if not providers:
            logging.warning(
                f"None of the requested providers {list(requested)} are available, "
                f"falling back to CPUExecutionProvider"
            )
            providers = ["CPUExecutionProvider"]
        return providers

    def _resolve_input_shape(self) -> List[int]:
        """Prefer the static shape declared by the graph; dynamic axes fall back to config."""
        configured = list(self.cfg.input_shape)
        declared: Optional[list] = None
        for inp in self._net.get_inputs():
            if inp.name == self.cfg.input_name:
                declared = list(inp.shape)
                break
        if not declared or len(declared) != 4:
            return configured
        return [d if isinstance(d, int) and d > 0 else c for d, c in zip(declared, configured)]

    @property
    def input_shape(self) -> List[int]:
        return list(self._input_shape)

    def net(self, tensor: np.ndarray) -> np.ndarray:
        try:
            with self._lock:
                outputs = self._net.run(
                    [self.cfg.output_name], {self.cfg.input_name: tensor}
                )
        except Exception as e:
            raise InferenceBackendError(f"Forward pass failed: {e}") from e
        return outputs[0]

    def nms(self, detection: np.ndarray, config: np.ndarray) -> np.ndarray:
        try:
            with self._lock:
                outputs = self._nms.run(
                    [self.cfg.nms_output_name],
                    {self.cfg.nms_input_name: detection, self.cfg.nms_config_name: config},
                )
        except Exception as e:
            raise InferenceBackendError(f"NMS pass failed: {e}") from e
        return outputs[0]
