"""
Unit tests for gearscan/screenshot_source.py and gearscan/debug_screenshot.py.
"""
from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import cv2
import numpy as np
import pytest

from gearscan.debug_screenshot import save_debug_image, save_debug_images
from gearscan.frame_buffer import FrameBuffer
from gearscan.screenshot_source import ScreenshotFileSource


class TestScreenshotFileSource:

    def test_bgr_image_becomes_opaque_bgra(self):
        image = np.zeros((4, 6, 3), dtype=np.uint8)
        image[0] = (1, 2, 3)

        source = ScreenshotFileSource(image)
        frame = FrameBuffer().update(source)

        assert (source.width, source.height) == (6, 4)
        assert len(source.buffer) == 6 * 4 * 4
        assert tuple(frame.pixels[0, 0]) == (1, 2, 3, 255)
        assert tuple(frame.pixels[3, 0]) == (0, 0, 0, 255)

    def test_grayscale_image(self):
        source = ScreenshotFileSource(np.full((3, 3), 77, dtype=np.uint8))
        frame = FrameBuffer().update(source)
        assert tuple(frame.pixels[1, 1]) == (77, 77, 77, 255)

    def test_bgra_alpha_kept(self, make_bgra):
        frame = FrameBuffer().update(ScreenshotFileSource(make_bgra(2, 2, (5, 6, 7, 100))))
        assert tuple(frame.pixels[0, 0]) == (5, 6, 7, 100)

    def test_from_file(self, tmp_path, make_bgra):
        path = tmp_path / "shot.png"
        cv2.imwrite(str(path), make_bgra(8, 4, (10, 20, 30, 200)))

        source = ScreenshotFileSource.from_file(path)

        assert source.is_ready()
        assert (source.width, source.height) == (8, 4)
        assert tuple(FrameBuffer().update(source).pixels[0, 0]) == (10, 20, 30, 200)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ScreenshotFileSource.from_file(tmp_path / "missing.png")


class TestDebugImages:

    def test_save_debug_image(self, tmp_path, make_bgra):
        with patch("gearscan.debug_screenshot.DEBUG_BASE", tmp_path):
            path = save_debug_image(make_bgra(4, 4), "frames", "capture", timestamp="20260104_100000_000000")

        assert path.endswith("20260104_100000_000000_capture.png")
        assert cv2.imread(path, cv2.IMREAD_UNCHANGED).shape == (4, 4, 4)

    def test_save_debug_images_share_timestamp(self, tmp_path):
        images = {"main_stat": np.zeros((2, 2, 3), np.uint8), "sub_stats": np.zeros((3, 2, 3), np.uint8)}

        with patch("gearscan.debug_screenshot.DEBUG_BASE", tmp_path):
            paths = save_debug_images(images, "regions")

        assert len(paths) == 2
        prefixes = {p.rsplit("_", 2)[0] for p in paths}
        assert len(prefixes) == 1
        assert all(Path(p).parent == tmp_path / "regions" and Path(p).exists() for p in paths)
