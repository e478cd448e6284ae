"""
Frame Buffer - owns the reusable capture buffer.

Capture sources hand out raw 4-byte-per-pixel rows bottom-up (DIB order).
FrameBuffer copies those bytes into a buffer it owns, reusing the storage
while the window size stays the same, and returns an upright copy:

    buffer = FrameBuffer()
    try:
        frame = buffer.update(source)
    except SourceUnavailable:
        pass  # skip this cycle

The live buffer is never handed out, so a resize can drop it safely.
Not thread-safe: at most one update() may run at a time.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import numpy as np

logger = logging.getLogger(__name__)

BYTES_PER_PIXEL = 4
SUPPORTED_PIXEL_FORMATS = ("BGRA32", "RGBA32")


class SourceUnavailable(RuntimeError):
    """The capture source has no usable frame right now (skip the cycle)."""


class CaptureSource(Protocol):
    """What FrameBuffer needs from a capture source."""

    width: int
    height: int
    pixel_format: str

    def is_ready(self) -> bool: ...

    @property
    def buffer(self) -> bytes | bytearray | memoryview | np.ndarray | None: ...


@dataclass(frozen=True)
class RawFrame:
    """An upright captured frame. pixels is (height, width, 4) uint8, read-only."""
    width: int
    height: int
    pixel_format: str
    pixels: np.ndarray

    def __post_init__(self) -> None:
        expected = self.width * self.height * BYTES_PER_PIXEL
        if self.pixels.size != expected:
            raise ValueError(
                f"Frame buffer holds {self.pixels.size} bytes, expected {expected} "
                f"for {self.width}x{self.height}"
            )


class FrameBuffer:
    """Persistent, resize-aware copy of the capture source's pixels."""

    def __init__(self) -> None:
        self._buffer: np.ndarray | None = None
        self.allocation_count = 0

    @property
    def size(self) -> tuple[int, int] | None:
        """(width, height) of the held buffer, or None before the first update."""
        if self._buffer is None:
            return None
        return self._buffer.shape[1], self._buffer.shape[0]

    def update(self, source: CaptureSource | None) -> RawFrame:
        """
        Copy the source's current pixels and return an upright frame.

        Raises:
            SourceUnavailable: Source missing, not ready, or buffer too short
        """
        if source is None or not source.is_ready():
            raise SourceUnavailable("Capture source is not ready")

        raw = source.buffer
        if raw is None:
            raise SourceUnavailable("Capture source has no buffer")

        width, height = int(source.width), int(source.height)
        if width <= 0 or height <= 0:
            raise SourceUnavailable(f"Capture source reports empty size {width}x{height}")

        pixel_format = source.pixel_format
        if pixel_format not in SUPPORTED_PIXEL_FORMATS:
            raise ValueError(f"Unsupported pixel format: {pixel_format}")

        nbytes = width * height * BYTES_PER_PIXEL
        src = np.frombuffer(raw, dtype=np.uint8)
        if src.size < nbytes:
            raise SourceUnavailable(f"Capture buffer holds {src.size} bytes, need {nbytes}")

        # Only reallocate when the window changed size
        if self.size != (width, height):
            if self._buffer is not None:
                logger.info(f"[FRAME] Capture size changed {self.size} -> {(width, height)}, reallocating")
            self._buffer = np.empty((height, width, BYTES_PER_PIXEL), dtype=np.uint8)
            self.allocation_count += 1

        # Raw byte copy into the owned storage
        self._buffer.reshape(-1)[:] = src[:nbytes]

        # Rows arrive bottom-up: source row y -> output row (height - 1 - y)
        upright = self._buffer[::-1].copy()
        upright.flags.writeable = False

        return RawFrame(width=width, height=height, pixel_format=pixel_format, pixels=upright)

    def release(self) -> None:
        """Drop the held buffer; the next update reallocates."""
        self._buffer = None
