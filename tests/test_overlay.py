"""
Tests for overlay rendering and display handling.
"""

import pytest
import numpy as np
from unittest.mock import patch

from models.detection import Box, Candidate, DetectionSet
from pipeline.overlay import OverlayRenderer, color_for, PALETTE


def detection_set(*boxes):
    return DetectionSet.from_candidates([
        Candidate(class_id=i, confidence=0.9, box=box, class_name=f"c{i}")
        for i, box in enumerate(boxes)
    ])


class TestDraw:
    def test_draws_in_place(self):
        frame = np.zeros((120, 160, 3), dtype=np.uint8)
        renderer = OverlayRenderer(enabled=False)

        out = renderer.draw(frame, detection_set(Box(40, 40, 50, 50)))

        assert out is frame
        assert frame.any()

    def test_empty_detection_set_leaves_frame_untouched(self):
        frame = np.zeros((120, 160, 3), dtype=np.uint8)
        OverlayRenderer(enabled=False).draw(frame, DetectionSet())
        assert not frame.any()

    def test_box_outside_frame_is_clamped(self):
        frame = np.zeros((100, 100, 3), dtype=np.uint8)

        OverlayRenderer(enabled=False).draw(frame, detection_set(Box(-50, -50, 300, 300)))

        assert frame.shape == (100, 100, 3)
        assert frame.any()

    def test_box_wholly_outside_frame_is_not_drawn(self):
        frame = np.zeros((100, 100, 3), dtype=np.uint8)

        OverlayRenderer(enabled=False).draw(frame, detection_set(Box(-60, -60, 20, 20)))

        assert not frame.any()

    def test_box_past_far_edge_is_not_drawn(self):
        frame = np.zeros((100, 100, 3), dtype=np.uint8)

        OverlayRenderer(enabled=False).draw(frame, detection_set(Box(150, 10, 30, 30)))

        assert not frame.any()

    def test_palette_wraps(self):
        assert color_for(0) == color_for(len(PALETTE))


class TestDisplay:
    def test_disabled_renderer_does_not_touch_window(self):
        renderer = OverlayRenderer(enabled=False)
        with patch("pipeline.overlay.cv2.imshow") as imshow, \
                patch("pipeline.overlay.cv2.waitKey") as wait_key:
            renderer.display(np.zeros((10, 10, 3), dtype=np.uint8))
            assert renderer.poll_key(5) == -1
        imshow.assert_not_called()
        wait_key.assert_not_called()

    def test_display_and_poll(self):
        renderer = OverlayRenderer(window_name="win", enabled=True)
        frame = np.zeros((10, 10, 3), dtype=np.uint8)
        with patch("pipeline.overlay.cv2.imshow") as imshow, \
                patch("pipeline.overlay.cv2.waitKey", return_value=27 | 0x100000):
            renderer.display(frame)
            assert renderer.poll_key(1) == 27
        imshow.assert_called_once_with("win", frame)

    def test_poll_without_key(self):
        renderer = OverlayRenderer(enabled=True)
        with patch("pipeline.overlay.cv2.waitKey", return_value=-1):
            assert renderer.poll_key(1) == -1

    def test_zero_timeout_waits_for_key(self):
        renderer = OverlayRenderer(enabled=True)
        with patch("pipeline.overlay.cv2.waitKey", return_value=ord("n")) as wait_key:
            assert renderer.poll_key(0) == ord("n")
        wait_key.assert_called_once_with(0)

    def test_close_only_after_display(self):
        renderer = OverlayRenderer(window_name="win", enabled=True)
        with patch("pipeline.overlay.cv2.destroyWindow") as destroy:
            renderer.close()
            destroy.assert_not_called()

            with patch("pipeline.overlay.cv2.imshow"):
                renderer.display(np.zeros((10, 10, 3), dtype=np.uint8))
            renderer.close()
            renderer.close()
            destroy.assert_called_once_with("win")
