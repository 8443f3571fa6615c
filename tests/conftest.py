"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.frame import FrameData  # noqa: E402
from observation.base import ObservationSource, ObservationConfig  # noqa: E402


class FakeBackend:
    """Backend returning fixture tensors and recording the calls it receives."""

    def __init__(self, selected=None, input_shape=(1, 3, 64, 64), net_error=None, nms_error=None):
        if selected is None:
            selected = np.array([[[32.0, 16.0, 8.0, 4.0, 0.1, 0.8]]], dtype=np.float32)
        self.selected = np.asarray(selected, dtype=np.float32)
        self._input_shape = list(input_shape)
        self.net_error = net_error
        self.nms_error = nms_error
        self.calls = []

    @property
    def input_shape(self):
        return list(self._input_shape)

    def net(self, tensor):
        self.calls.append(("net", tensor.shape))
        if self.net_error is not None:
            error, self.net_error = self.net_error, None
            raise error
        return np.zeros((1, 6, 10), dtype=np.float32)

    def nms(self, detection, config):
        self.calls.append(("nms", [float(v) for v in config]))
        if self.nms_error is not None:
            error, self.nms_error = self.nms_error, None
            raise error
        return self.selected


class FakeVideoSource(ObservationSource):
    """Source serving a fixed list of frames; reports no width once exhausted."""

    def __init__(self, frames=None, live=False, source_id="fake"):
        super().__init__(ObservationConfig(source_id=source_id))
        self._frames = list(frames or [])
        self._pos = 0
        self._live = live
        self.closed = False

    @property
    def video_width(self):
        if not self._is_open or self._pos >= len(self._frames):
            return 0
        return self._frames[self._pos].shape[1]

    @property
    def has_stream(self):
        return self._live and self._is_open

    def open(self):
        self._is_open = True
        self._pos = 0
        self._frame_index = 0

    def read(self):
        if not self._is_open or self._pos >= len(self._frames):
            return None
        frame = self._frames[self._pos]
        self._pos += 1
        self._frame_index += 1
        return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=self._frame_index, source=self.source_id)

    def close(self):
        self._is_open = False
        self.closed = True


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def backend_factory():
    return FakeBackend


@pytest.fixture
def source_factory():
    return FakeVideoSource


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
source:
  device_id: 0

model:
  model: "models/yolov8n.onnx"
  nms_model: "models/nms-yolov8.onnx"
  input_shape: [1, 3, 640, 640]

detection:
  topk: 100
  iou_threshold: 0.45
  score_threshold: 0.25

pump:
  fps: 30

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "source": {
            "device_id": 0,
            "resolution": [1280, 720],
        },
        "model": {
            "model": "models/yolov8n.onnx",
            "nms_model": "models/nms-yolov8.onnx",
            "input_shape": [1, 3, 640, 640],
            "providers": ["CPUExecutionProvider"],
        },
        "detection": {
            "topk": 100,
            "iou_threshold": 0.45,
            "score_threshold": 0.25,
        },
        "pump": {
            "fps": 30,
            "scale_factor": 1.0,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
