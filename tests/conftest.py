"""
Pytest configuration and shared fixtures for gearscan tests.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import numpy as np
import pytest

# Add project root to path so imports work
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from gearscan.scan_config import ScanConfig

if TYPE_CHECKING:
    import numpy.typing as npt


# Small reference resolution keeps the pipeline tests fast.
# Regions are the default ones scaled down by 10.
TEST_REFERENCE = (256, 137)
TEST_MAIN_REGION = (0, 40, 78, 8)
TEST_SUB_REGION = (0, 51, 78, 22)


# =============================================================================
# Frame Fixtures
# =============================================================================

def bgra_image(width: int, height: int, color: tuple[int, int, int, int] = (0, 0, 0, 255)) -> npt.NDArray[np.uint8]:
    """Top-down BGRA image filled with one colour."""
    image = np.empty((height, width, 4), dtype=np.uint8)
    image[:] = color
    return image


@pytest.fixture
def make_bgra() -> Any:
    """Factory for solid BGRA frames: make_bgra(width, height, color)."""
    return bgra_image


@pytest.fixture
def random_bgra() -> npt.NDArray[np.uint8]:
    """Random 64x48 BGRA frame."""
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, (48, 64, 4), dtype=np.uint8)


@pytest.fixture
def tooltip_frame() -> npt.NDArray[np.uint8]:
    """
    Frame at the test reference size with a tooltip-like layout:
    translucent game background, opaque dark tooltip panel (columns 0-69),
    opaque near-white text blocks inside the panel.
    """
    frame = bgra_image(*TEST_REFERENCE, color=(40, 30, 20, 120))
    frame[38:75, 0:70] = (30, 25, 20, 255)      # tooltip panel
    frame[42:46, 5:40] = (240, 240, 240, 255)   # main stat text
    frame[55:70, 5:60] = (235, 235, 235, 255)   # sub stat text
    return frame


# =============================================================================
# Capture Source Fixtures
# =============================================================================

class FakeCaptureSource:
    """In-memory capture source; stores rows bottom-up like the window source."""

    def __init__(self, image: np.ndarray, pixel_format: str = "BGRA32", ready: bool = True):
        self.pixel_format = pixel_format
        self.ready = ready
        self.refresh_count = 0
        self.set_image(image)

    def set_image(self, image: np.ndarray) -> None:
        self.height, self.width = image.shape[:2]
        self._buffer: bytes | None = np.ascontiguousarray(image[::-1]).tobytes()

    def is_ready(self) -> bool:
        return self.ready

    def refresh(self) -> None:
        self.refresh_count += 1

    @property
    def buffer(self) -> bytes | None:
        return self._buffer


@pytest.fixture
def make_source() -> Any:
    """Factory for FakeCaptureSource(image, pixel_format="BGRA32", ready=True)."""
    return FakeCaptureSource


@pytest.fixture
def tooltip_source(tooltip_frame: npt.NDArray[np.uint8]) -> FakeCaptureSource:
    return FakeCaptureSource(tooltip_frame)


# =============================================================================
# OCR Mock Fixtures
# =============================================================================

MAIN_STAT_TEXT = "  Epic\nAttack 12%  \n"
SUB_STATS_TEXT = "Speed 4 (1)\nCritical Hit Chance 15%(3)\nHealth 2,700\nDefense% 8% (2)\n"


@pytest.fixture
def mock_ocr() -> MagicMock:
    """Mock OCR engine answering main stat text, then sub stat text, alternating."""
    ocr = MagicMock()
    ocr.initialize = MagicMock(return_value=None)
    ocr.set_image = MagicMock(return_value=None)
    texts = [MAIN_STAT_TEXT, SUB_STATS_TEXT]
    calls = {"n": 0}

    def _get_text() -> str:
        text = texts[calls["n"] % 2]
        calls["n"] += 1
        return text

    ocr.get_text = MagicMock(side_effect=_get_text)
    return ocr


# =============================================================================
# Config Fixtures
# =============================================================================

@pytest.fixture
def scan_config() -> ScanConfig:
    """Scan config at the small test reference resolution with fast timings."""
    return ScanConfig(
        main_stat_region=TEST_MAIN_REGION,
        sub_stats_region=TEST_SUB_REGION,
        reference_resolution=TEST_REFERENCE,
        scan_interval_seconds=0.01,
        source_poll_interval=0.01,
    )
