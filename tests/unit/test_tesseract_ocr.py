"""
Unit tests for gearscan/tesseract_ocr.py.

pytesseract calls are patched; no Tesseract install needed.
"""
from __future__ import annotations

from unittest.mock import patch

import numpy as np
import pytesseract
import pytest
from PIL import Image

from gearscan.tesseract_ocr import TesseractOCR


@pytest.fixture
def tesseract():
    """Patch the pytesseract entry points used by TesseractOCR."""
    with patch("pytesseract.get_languages", return_value=["eng", "osd"]) as languages, \
         patch("pytesseract.get_tesseract_version", return_value="5.3.0"), \
         patch("pytesseract.image_to_string", return_value="Attack 12%\n") as to_string:
        yield {"get_languages": languages, "image_to_string": to_string}


@pytest.fixture
def ocr(tesseract):
    engine = TesseractOCR()
    engine.initialize("eng")
    return engine


class TestInitialize:

    def test_sets_language(self, ocr):
        assert ocr.language_id == "eng"

    def test_missing_language(self, tesseract):
        with pytest.raises(RuntimeError, match="kor"):
            TesseractOCR().initialize("kor")

    def test_tesseract_not_installed(self):
        with patch("pytesseract.get_languages", side_effect=pytesseract.TesseractNotFoundError()):
            with pytest.raises(RuntimeError, match="not installed"):
                TesseractOCR().initialize("eng")

    def test_custom_command(self):
        with patch.object(pytesseract.pytesseract, "tesseract_cmd", "tesseract"):
            TesseractOCR(tesseract_cmd="/opt/tesseract/bin/tesseract")
            assert pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract/bin/tesseract"


class TestGetText:

    def test_reads_text(self, ocr, tesseract):
        ocr.set_image(np.zeros((8, 16, 3), dtype=np.uint8))

        assert ocr.get_text() == "Attack 12%\n"
        kwargs = tesseract["image_to_string"].call_args.kwargs
        assert kwargs["lang"] == "eng"
        assert kwargs["config"] == "--psm 6 --oem 3"

    def test_bgr_converted_to_rgb(self, ocr, tesseract):
        image = np.zeros((2, 2, 3), dtype=np.uint8)
        image[:] = (10, 20, 30)

        ocr.set_image(image)
        ocr.get_text()

        pil_image = tesseract["image_to_string"].call_args.args[0]
        assert isinstance(pil_image, Image.Image)
        assert pil_image.getpixel((0, 0)) == (30, 20, 10)

    def test_accepts_pil_image(self, ocr, tesseract):
        image = Image.new("RGB", (4, 4))
        ocr.set_image(image)
        ocr.get_text()
        assert tesseract["image_to_string"].call_args.args[0] is image

    def test_four_channels_rejected(self, ocr):
        with pytest.raises(ValueError):
            ocr.set_image(np.zeros((2, 2, 4), dtype=np.uint8))

    def test_without_image(self, ocr):
        with pytest.raises(RuntimeError):
            ocr.get_text()

    def test_image_consumed(self, ocr):
        ocr.set_image(np.zeros((2, 2, 3), dtype=np.uint8))
        ocr.get_text()
        with pytest.raises(RuntimeError):
            ocr.get_text()

    def test_not_initialized(self, tesseract):
        engine = TesseractOCR()
        engine.set_image(np.zeros((2, 2, 3), dtype=np.uint8))
        with pytest.raises(RuntimeError):
            engine.get_text()

    def test_engine_failure_reads_empty(self, ocr, tesseract, caplog):
        tesseract["image_to_string"].side_effect = pytesseract.TesseractError(1, "bad image")
        ocr.set_image(np.zeros((2, 2, 3), dtype=np.uint8))

        assert ocr.get_text() == ""
        assert "bad image" in caplog.text
