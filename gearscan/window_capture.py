"""
Window capture source - grabs the game window with the PrintWindow API.

Implements the CaptureSource protocol used by gearscan.frame_buffer:
rows are handed out bottom-up (DIB order) as BGRA bytes.

Usage:
    source = WindowCaptureSource("Epic Seven")
    if source.is_ready():
        source.refresh()
        frame = FrameBuffer().update(source)
"""
from __future__ import annotations

import logging
import time
from ctypes import windll

import numpy as np
import win32gui
import win32ui

logger = logging.getLogger(__name__)

PW_RENDERFULLCONTENT = 0x00000002


class WindowCaptureSource:
    """Capture source backed by a top-level window."""

    pixel_format = "BGRA32"

    def __init__(self, window_title: str, max_retries: int = 3):
        """
        Args:
            window_title: Exact title of the window to capture
            max_retries: PrintWindow attempts per refresh
        """
        self.window_title = window_title
        self.max_retries = max_retries
        self.hwnd = None
        self.width = 0
        self.height = 0
        self._buffer: bytes | None = None

    def _find_window(self) -> bool:
        self.hwnd = win32gui.FindWindow(None, self.window_title) or None
        return self.hwnd is not None

    def is_ready(self) -> bool:
        """True when the window exists, is not minimized and has a captured frame."""
        if self.hwnd is None or not win32gui.IsWindow(self.hwnd):
            if not self._find_window():
                return False
        if win32gui.IsIconic(self.hwnd):
            return False
        if self._buffer is None:
            try:
                self.refresh()
            except RuntimeError as e:
                logger.debug(f"[CAPTURE] {e}")
                return False
        return self._buffer is not None

    @property
    def buffer(self) -> bytes | None:
        return self._buffer

    def refresh(self) -> None:
        """
        Capture the window content into the source buffer.

        Raises:
            RuntimeError: If the window is gone or PrintWindow keeps failing
        """
        for attempt in range(self.max_retries):
            try:
                # Re-find window handle in case it changed
                if attempt > 0:
                    self._find_window()
                    time.sleep(0.1)
                if self.hwnd is None:
                    raise RuntimeError(f"Could not find window: {self.window_title}")

                bits, width, height = self._print_window()
                self._buffer = self._to_bottom_up_bgra(bits, width, height)
                self.width, self.height = width, height
                return

            except Exception as e:
                if attempt < self.max_retries - 1:
                    time.sleep(0.2)
                    continue
                self._buffer = None
                raise RuntimeError(f"PrintWindow failed after {self.max_retries} attempts: {e}")

    def _print_window(self) -> tuple[bytes, int, int]:
        left, top, right, bottom = win32gui.GetClientRect(self.hwnd)
        width = right - left
        height = bottom - top
        if width <= 0 or height <= 0:
            raise RuntimeError(f"Window has empty client area {width}x{height}")

        hwnd_dc = win32gui.GetWindowDC(self.hwnd)
        mfc_dc = win32ui.CreateDCFromHandle(hwnd_dc)
        save_dc = mfc_dc.CreateCompatibleDC()
        save_bitmap = win32ui.CreateBitmap()
        try:
            save_bitmap.CreateCompatibleBitmap(mfc_dc, width, height)
            save_dc.SelectObject(save_bitmap)

            result = windll.user32.PrintWindow(self.hwnd, save_dc.GetSafeHdc(), PW_RENDERFULLCONTENT)
            if result == 0:
                raise RuntimeError("PrintWindow returned 0")

            bmpinfo = save_bitmap.GetInfo()
            bits = save_bitmap.GetBitmapBits(True)
            return bits, bmpinfo['bmWidth'], bmpinfo['bmHeight']
        finally:
            win32gui.DeleteObject(save_bitmap.GetHandle())
            save_dc.DeleteDC()
            mfc_dc.DeleteDC()
            win32gui.ReleaseDC(self.hwnd, hwnd_dc)

    @staticmethod
    def _to_bottom_up_bgra(bits: bytes, width: int, height: int) -> bytes:
        """GetBitmapBits is top-down BGRX; hand it out bottom-up with a usable alpha."""
        pixels = np.frombuffer(bits, dtype=np.uint8).reshape(height, width, 4)[::-1].copy()
        # Compatible bitmaps carry no alpha; treat every pixel as opaque
        if not pixels[..., 3].any():
            pixels[..., 3] = 255
        return pixels.tobytes()
