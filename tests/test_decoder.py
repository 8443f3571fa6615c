"""
Tests for decoding NMS rows into boxes.
"""

import numpy as np
import pytest

from detection.decoder import decode_boxes
from models.errors import InferenceBackendError
from models.labels import COCO_LABELS


def rows(*values):
    return np.array([list(values)], dtype=np.float32)


class TestDecodeArithmetic:
    def test_center_to_corner_with_ratios(self):
        selected = rows([100, 50, 40, 20, 0.1, 0.9])
        boxes = decode_boxes(selected, x_ratio=2.0, y_ratio=1.0)

        assert len(boxes) == 1
        assert boxes[0].bounding == (160.0, 40.0, 80.0, 20.0)
        assert boxes[0].label == 1
        assert boxes[0].probability == pytest.approx(0.9)

    def test_unit_ratios(self):
        boxes = decode_boxes(rows([10, 10, 4, 6, 0.7]), 1.0, 1.0)
        assert boxes[0].bounding == (8.0, 7.0, 4.0, 6.0)


class TestLabelSelection:
    def test_tie_picks_lowest_index(self):
        boxes = decode_boxes(rows([10, 10, 2, 2, 0.5, 0.5]), 1.0, 1.0)
        assert boxes[0].label == 0
        assert boxes[0].probability == 0.5

    def test_row_width_read_from_shape(self):
        """Seven-wide rows mean three classes."""
        selected = rows([10, 10, 2, 2, 0.1, 0.2, 0.6], [20, 20, 2, 2, 0.3, 0.1, 0.1])
        boxes = decode_boxes(selected, 1.0, 1.0)

        assert [b.label for b in boxes] == [2, 0]

    def test_class_names_from_labels(self):
        selected = rows([10, 10, 2, 2, 0.9, 0.1])
        boxes = decode_boxes(selected, 1.0, 1.0, labels=COCO_LABELS)

        assert boxes[0].class_name == "person"

    def test_no_labels_no_class_name(self):
        boxes = decode_boxes(rows([10, 10, 2, 2, 0.9]), 1.0, 1.0)
        assert boxes[0].class_name is None


class TestLimitsAndShapes:
    def test_empty_selection(self):
        selected = np.zeros((1, 0, 84), dtype=np.float32)
        assert decode_boxes(selected, 1.0, 1.0) == []

    def test_max_boxes_truncates(self):
        selected = rows(*[[i, i, 1, 1, 0.5] for i in range(6)])
        boxes = decode_boxes(selected, 1.0, 1.0, max_boxes=3)

        assert len(boxes) == 3
        assert [b.bounding[0] for b in boxes] == [-0.5, 0.5, 1.5]

    def test_rank_two_rejected(self):
        with pytest.raises(InferenceBackendError):
            decode_boxes(np.zeros((2, 6), dtype=np.float32), 1.0, 1.0)

    def test_row_without_scores_rejected(self):
        with pytest.raises(InferenceBackendError):
            decode_boxes(rows([10, 10, 2, 2]), 1.0, 1.0)


class TestClamp:
    def test_not_clamped_by_default(self):
        boxes = decode_boxes(rows([2, 2, 10, 10, 0.9]), 1.0, 1.0)
        assert boxes[0].bounding == (-3.0, -3.0, 10.0, 10.0)

    def test_clamped_to_source(self):
        boxes = decode_boxes(rows([95, 2, 20, 10, 0.9]), 1.0, 1.0, clamp_to=(100, 50))
        assert boxes[0].bounding == (85.0, 0.0, 15.0, 7.0)
