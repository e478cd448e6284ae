"""
Screenshot file source - replays a saved screenshot as a capture source.

Lets the whole scan pipeline run offline (scripts/scan_screenshot.py, tests).
Delivers the same layout as the live window source: BGRA rows bottom-up.
"""
from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np


class ScreenshotFileSource:
    """CaptureSource backed by an image file or an in-memory BGR/BGRA array."""

    pixel_format = "BGRA32"

    def __init__(self, image: np.ndarray):
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
        elif image.shape[2] == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
        self.height, self.width = image.shape[:2]
        self._buffer = np.ascontiguousarray(image[::-1]).tobytes()

    @classmethod
    def from_file(cls, path: str | Path) -> "ScreenshotFileSource":
        """
        Load a screenshot from disk (alpha kept if the file has one).

        Raises:
            FileNotFoundError: If the file is missing or unreadable
        """
        image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if image is None:
            raise FileNotFoundError(f"Could not read screenshot: {path}")
        return cls(image)

    def is_ready(self) -> bool:
        return True

    def refresh(self) -> None:
        """Nothing to re-capture; the screenshot never changes."""

    @property
    def buffer(self) -> bytes:
        return self._buffer
