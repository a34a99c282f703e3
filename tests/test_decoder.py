"""
Tests for decoding raw detector output.
"""

import pytest
import numpy as np

from conftest import make_row
from detection.decoder import decode
from runtime.errors import DecodeError, InferenceError


class TestDecode:
    def test_converts_fractions_to_pixels(self):
        raw = np.array([make_row(0.5, 0.5, 0.25, 0.5, [0.1, 0.9])])

        [cand] = decode([raw], 640, 480, 0.5)

        assert cand.class_id == 1
        assert cand.confidence == pytest.approx(0.9)
        # center (320, 240), size (160, 240)
        assert (cand.box.left, cand.box.top, cand.box.width, cand.box.height) == (240, 120, 160, 240)

    def test_uses_max_class_score_not_objectness(self):
        # Low objectness does not matter; the max class score decides
        raw = np.array([make_row(0.5, 0.5, 0.1, 0.1, [0.8, 0.2], objectness=0.05)])

        [cand] = decode([raw], 100, 100, 0.5)

        assert cand.confidence == pytest.approx(0.8)
        assert cand.class_id == 0

    def test_high_objectness_low_scores_discarded(self):
        raw = np.array([make_row(0.5, 0.5, 0.1, 0.1, [0.3, 0.2], objectness=0.99)])
        assert decode([raw], 100, 100, 0.5) == []

    def test_threshold_is_strict(self):
        raw = np.array([
            make_row(0.5, 0.5, 0.1, 0.1, [0.5, 0.1]),
            make_row(0.5, 0.5, 0.1, 0.1, [0.1, 0.51]),
        ])

        result = decode([raw], 100, 100, 0.5)

        assert len(result) == 1
        assert result[0].class_id == 1

    def test_all_scores_below_threshold(self):
        raw = np.array([make_row(0.5, 0.5, 0.2, 0.2, [0.1, 0.4, 0.3]) for _ in range(10)])
        assert decode([raw], 640, 480, 0.5) == []

    def test_preserves_row_order_across_tensors(self):
        first = np.array([
            make_row(0.1, 0.1, 0.1, 0.1, [0.6, 0.0]),
            make_row(0.2, 0.2, 0.1, 0.1, [0.0, 0.95]),
        ])
        second = np.array([make_row(0.3, 0.3, 0.1, 0.1, [0.7, 0.0])])

        result = decode([first, second], 100, 100, 0.5)

        assert [c.confidence for c in result] == pytest.approx([0.6, 0.95, 0.7])

    def test_negative_left_top_near_edge(self):
        raw = np.array([make_row(0.0, 0.0, 0.2, 0.2, [0.9])])

        [cand] = decode([raw], 100, 100, 0.5)

        assert cand.box.left == -10
        assert cand.box.top == -10
        assert cand.box.width == 20

    def test_negative_size_clamped_to_zero(self):
        raw = np.array([make_row(0.5, 0.5, -0.1, 0.2, [0.9])])

        [cand] = decode([raw], 100, 100, 0.5)

        assert cand.box.width == 0
        assert cand.box.height == 20

    def test_integer_truncation(self):
        raw = np.array([make_row(0.333, 0.5, 0.111, 0.1, [0.9])])

        [cand] = decode([raw], 100, 100, 0.5)

        # center_x = int(33.3) = 33, width = int(11.1) = 11, left = int(27.5) = 27
        assert cand.box.left == 27
        assert cand.box.width == 11

    def test_deterministic(self):
        rng = np.random.default_rng(7)
        raw = rng.random((50, 5 + 4))

        assert decode([raw], 640, 480, 0.5) == decode([raw.copy()], 640, 480, 0.5)

    def test_class_names(self):
        raw = np.array([make_row(0.5, 0.5, 0.1, 0.1, [0.1, 0.9])])

        [cand] = decode([raw], 100, 100, 0.5, class_names=["person", "car"])

        assert cand.class_name == "car"

    def test_empty_outputs(self):
        assert decode([], 640, 480) == []
        assert decode([np.empty((0, 85))], 640, 480) == []

    def test_batched_tensor(self):
        raw = np.array([[make_row(0.5, 0.5, 0.1, 0.1, [0.9, 0.0])]])
        assert raw.ndim == 3

        assert len(decode([raw], 100, 100, 0.5)) == 1

    def test_flat_buffer_with_known_class_count(self):
        flat = np.array(
            make_row(0.5, 0.5, 0.1, 0.1, [0.9, 0.0]) + make_row(0.2, 0.2, 0.1, 0.1, [0.0, 0.8])
        )

        result = decode([flat], 100, 100, 0.5, num_classes=2)

        assert [c.class_id for c in result] == [0, 1]


class TestDecodeErrors:
    def test_column_mismatch(self):
        raw = np.zeros((3, 5 + 80))
        with pytest.raises(DecodeError):
            decode([raw], 640, 480, num_classes=2)

    def test_flat_buffer_not_divisible(self):
        with pytest.raises(DecodeError):
            decode([np.zeros(13)], 640, 480, num_classes=2)

    def test_rows_without_class_scores(self):
        with pytest.raises(DecodeError):
            decode([np.zeros((2, 5))], 640, 480)

    def test_decode_error_is_inference_error(self):
        assert issubclass(DecodeError, InferenceError)
