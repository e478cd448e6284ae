"""
Tesseract OCR engine wrapper.

Stateful like the engine it wraps: set one image, then read its text.

Usage:
    from gearscan.tesseract_ocr import TesseractOCR

    ocr = TesseractOCR()
    ocr.initialize("eng")
    ocr.set_image(bgr_image)   # 3-channel numpy array (BGR) or PIL Image
    text = ocr.get_text()

An engine failure is logged and reads as empty text; callers cannot tell it
apart from an image without text.
"""
from __future__ import annotations

import logging

import numpy as np
import pytesseract
from PIL import Image

logger = logging.getLogger(__name__)

# Block of uniform text, LSTM engine
DEFAULT_TESSERACT_CONFIG = "--psm 6 --oem 3"


class TesseractOCR:
    """OCR engine backed by a local Tesseract install."""

    def __init__(self, tesseract_cmd: str | None = None, config: str = DEFAULT_TESSERACT_CONFIG):
        """
        Args:
            tesseract_cmd: Path to tesseract executable (None = use PATH)
            config: Extra tesseract CLI options
        """
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.config = config
        self.language_id: str | None = None
        self._image: Image.Image | None = None

    def initialize(self, language_id: str = "eng") -> None:
        """
        Select the recognition language.

        Raises:
            RuntimeError: If tesseract is not installed or lacks the language pack
        """
        try:
            available = pytesseract.get_languages(config="")
        except pytesseract.TesseractNotFoundError as e:
            raise RuntimeError(f"Tesseract is not installed or not on PATH: {e}") from e

        if language_id not in available:
            raise RuntimeError(
                f"Tesseract language '{language_id}' not installed (available: {', '.join(sorted(available))})"
            )

        self.language_id = language_id
        logger.info(f"[OCR] Tesseract {pytesseract.get_tesseract_version()} ready (lang={language_id})")

    def set_image(self, image: np.ndarray | Image.Image) -> None:
        """
        Set the image for the next get_text() call.

        Args:
            image: 3-channel BGR numpy array, grayscale array, or PIL Image
        """
        if isinstance(image, np.ndarray):
            if image.ndim == 3:
                if image.shape[2] != 3:
                    raise ValueError(f"OCR needs a 3-channel image, got shape {image.shape}")
                # BGR to RGB
                image = Image.fromarray(np.ascontiguousarray(image[:, :, ::-1]))
            else:
                image = Image.fromarray(image)
        self._image = image

    def get_text(self) -> str:
        """
        Recognize text in the current image.

        Raises:
            RuntimeError: If initialize() or set_image() was not called
        """
        if self.language_id is None:
            raise RuntimeError("TesseractOCR.initialize() must be called first")
        if self._image is None:
            raise RuntimeError("TesseractOCR.set_image() must be called before get_text()")

        image, self._image = self._image, None
        try:
            return pytesseract.image_to_string(image, lang=self.language_id, config=self.config)
        except pytesseract.TesseractError as e:
            logger.warning(f"[OCR] Tesseract failed: {e}")
            return ""
