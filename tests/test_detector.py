"""
Tests for the still-image detection pipeline.
"""

import numpy as np
import pytest

from detection.detector import Detector, detect_image
from models.config import DetectionConfig
from models.errors import InferenceBackendError, InvalidImageSource
from rendering.canvas import Canvas


def run(backend, image, canvas=None, callback=None, topk=100, **kwargs):
    return detect_image(
        image, canvas, backend, topk, 0.45, 0.25, backend.input_shape, callback=callback, **kwargs
    )


class TestDetectImage:
    def test_boxes_in_source_coordinates(self, backend_factory):
        # 64x64 model, 128x64 image: x_ratio 1, y_ratio 2
        backend = backend_factory(selected=[[[32, 16, 8, 4, 0.1, 0.8]]])
        image = np.zeros((64, 128, 3), dtype=np.uint8)

        boxes = run(backend, image)

        assert len(boxes) == 1
        assert boxes[0].bounding == (28.0, 28.0, 8.0, 8.0)
        assert boxes[0].label == 1

    def test_model_size_from_input_shape(self, backend_factory):
        backend = backend_factory(input_shape=(1, 3, 32, 48))
        run(backend, np.zeros((20, 20, 3), dtype=np.uint8))

        assert backend.calls[0] == ("net", (1, 3, 32, 48))

    def test_thresholds_forwarded(self, fake_backend):
        detect_image(np.zeros((8, 8, 3), dtype=np.uint8), None, fake_backend, 7, 0.6, 0.4, fake_backend.input_shape)

        assert fake_backend.calls[1][1] == pytest.approx([7, 0.6, 0.4])

    def test_never_more_than_topk(self, backend_factory):
        backend = backend_factory(selected=[[[i, i, 2, 2, 0.9] for i in range(10)]])

        boxes = run(backend, np.zeros((64, 64, 3), dtype=np.uint8), topk=4)

        assert len(boxes) == 4

    def test_callback_once_after_render(self, fake_backend):
        canvas = Canvas()
        seen = []

        def callback():
            seen.append(canvas.is_blank)

        run(fake_backend, np.zeros((64, 64, 3), dtype=np.uint8), canvas=canvas, callback=callback)

        assert seen == [False]

    def test_canvas_sized_to_image(self, fake_backend):
        canvas = Canvas(10, 10)
        run(fake_backend, np.zeros((48, 80, 3), dtype=np.uint8), canvas=canvas)

        assert (canvas.width, canvas.height) == (80, 48)

    def test_clamp_option(self, backend_factory):
        backend = backend_factory(selected=[[[2, 2, 10, 10, 0.9]]])
        image = np.zeros((64, 64, 3), dtype=np.uint8)

        assert run(backend, image)[0].bounding[0] < 0
        assert run(backend, image, clamp_boxes=True)[0].bounding[0] == 0.0

    def test_invalid_image_never_reaches_backend(self, fake_backend):
        with pytest.raises(InvalidImageSource):
            run(fake_backend, np.zeros((0, 10, 3), dtype=np.uint8))

        assert fake_backend.calls == []

    def test_backend_error_surfaces_without_callback(self, backend_factory):
        backend = backend_factory(net_error=RuntimeError("boom"))
        calls = []

        with pytest.raises(InferenceBackendError):
            run(backend, np.zeros((16, 16, 3), dtype=np.uint8), callback=lambda: calls.append(1))

        assert calls == []


class TestDetector:
    def test_uses_backend_input_shape(self, backend_factory):
        detector = Detector(backend_factory(input_shape=(1, 3, 32, 32)))
        assert detector.input_shape == [1, 3, 32, 32]

    def test_config_and_labels(self, fake_backend):
        detector = Detector(fake_backend, DetectionConfig(topk=5), labels=["cat", "dog"])
        boxes = detector.detect(np.zeros((64, 64, 3), dtype=np.uint8))

        assert fake_backend.calls[1][1][0] == 5
        assert boxes[0].class_name == "dog"

    def test_bad_input_shape(self, fake_backend):
        with pytest.raises(ValueError):
            Detector(fake_backend, input_shape=[640, 640])
