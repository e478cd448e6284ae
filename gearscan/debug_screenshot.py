"""
Debug image dump for scan cycles.

Usage:
    from gearscan.debug_screenshot import save_debug_image

    save_debug_image(frame.pixels, "frames", "capture")
    # Saves to: debug/frames/20251209_060553_123456_capture.png

    save_debug_images(result.region_images, "regions")
    # One PNG per region image, same timestamp
"""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Mapping

import cv2
import numpy as np

# Base debug directory
DEBUG_BASE = Path(__file__).parent.parent / "debug"


def save_debug_image(image: np.ndarray, category: str, label: str, timestamp: str | None = None) -> str:
    """
    Save a debug image with timestamp and label.

    Args:
        image: BGR/BGRA/grayscale numpy array
        category: Subdirectory, e.g. "frames", "regions"
        label: Description for the filename, e.g. "sub_stats_blend"
        timestamp: Shared timestamp prefix (default: now)

    Returns:
        str: Path to saved file
    """
    debug_dir = DEBUG_BASE / category
    debug_dir.mkdir(parents=True, exist_ok=True)

    if timestamp is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filepath = debug_dir / f"{timestamp}_{label}.png"

    cv2.imwrite(str(filepath), np.ascontiguousarray(image))

    return str(filepath)


def save_debug_images(images: Mapping[str, np.ndarray], category: str) -> list[str]:
    """Save several images under one timestamp. Returns the written paths."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    return [
        save_debug_image(image, category, label, timestamp=timestamp)
        for label, image in images.items()
    ]
