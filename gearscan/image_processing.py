"""
Pixel region transforms used to prepare equipment text for OCR.

All functions take a uint8 numpy image and return a NEW read-only image; the
input is never modified. 4-channel images are BGRA (cv2 channel order) unless
a pixel_format says otherwise.

Pipeline (see gearscan.equipment_scanner):
    main stat:  rescale -> crop -> black_mask(invert=True) -> to_three_channel
    sub stats:  rescale -> crop -> black_mask(invert=True) --+
                rescale -> crop -> alpha_contrast -----------+-> multiply_blend -> to_three_channel

Region rectangles are defined once at the reference resolution (2560x1369)
and converted to fractions, so every capture size maps onto the same text.
"""
from __future__ import annotations

import cv2
import numpy as np

REFERENCE_WIDTH = 2560
REFERENCE_HEIGHT = 1369

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


class DimensionMismatch(RuntimeError):
    """Raised when two images that must share a size do not."""


def _frozen(image: np.ndarray) -> np.ndarray:
    image.flags.writeable = False
    return image


def rescale(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resample to width x height with bilinear filtering."""
    if image.shape[1] == width and image.shape[0] == height:
        return _frozen(image.copy())
    src = image if image.flags.writeable else image.copy()  # cv2 wants a writable array
    resized = cv2.resize(src, (width, height), interpolation=cv2.INTER_LINEAR)
    return _frozen(resized)


def crop(image: np.ndarray, x: float, y: float, w: float, h: float) -> np.ndarray:
    """
    Crop by normalized coordinates (top-left origin).

    Args:
        image: Source image
        x, y: Top-left corner as fractions of width/height, clamped to [0, 1]
        w, h: Size as fractions, clamped so the crop stays inside the image

    Returns:
        Cropped copy. Pixel coordinates are rounded to the nearest integer.
    """
    x = min(max(x, 0.0), 1.0)
    y = min(max(y, 0.0), 1.0)
    w = min(max(w, 0.0), 1.0 - x)
    h = min(max(h, 0.0), 1.0 - y)

    img_h, img_w = image.shape[:2]
    px = round(img_w * x)
    py = round(img_h * y)
    pw = round(img_w * w)
    ph = round(img_h * h)

    return _frozen(image[py:py + ph, px:px + pw].copy())


def black_mask(image: np.ndarray, threshold: float, invert: bool = False) -> np.ndarray:
    """
    Binarize on "is this pixel black".

    A pixel is black when all three colour channels are below threshold
    (normalized to [0, 1]). Output is black where (is_black XOR invert),
    white elsewhere, always opaque. Alpha is not read.

    With invert=True the dark glyphs of the tooltip come out black on white.
    """
    color = image[..., :3].astype(np.float32) / 255.0
    is_black = np.all(color < threshold, axis=-1)
    out_black = np.logical_xor(is_black, invert)

    out = np.empty((*image.shape[:2], 4), dtype=np.uint8)
    out[:] = WHITE
    out[out_black] = BLACK
    return _frozen(out)


def alpha_contrast(image: np.ndarray, threshold: float) -> np.ndarray:
    """
    Binarize on the alpha channel only.

    alpha / 255 >= threshold -> opaque white, else opaque black.
    """
    if image.ndim != 3 or image.shape[2] != 4:
        raise ValueError(f"alpha_contrast needs a 4-channel image, got shape {image.shape}")

    alpha = image[..., 3].astype(np.float32) / 255.0
    out = np.empty((*image.shape[:2], 4), dtype=np.uint8)
    out[:] = BLACK
    out[alpha >= threshold] = WHITE
    return _frozen(out)


def multiply_blend(image_a: np.ndarray, image_b: np.ndarray) -> np.ndarray:
    """
    Multiply blend, every channel independently in [0, 1] space.

    Raises:
        DimensionMismatch: If the images differ in size or channel count
    """
    if image_a.shape != image_b.shape:
        raise DimensionMismatch(f"Image dimensions must match: {image_a.shape} vs {image_b.shape}")

    product = image_a.astype(np.float32) * image_b.astype(np.float32) / 255.0
    return _frozen(np.rint(product).astype(np.uint8))


def to_three_channel(image: np.ndarray, pixel_format: str = "BGRA32") -> np.ndarray:
    """
    Drop alpha and return a 3-channel BGR image (the OCR engine only takes 3 bytes/pixel).

    Args:
        image: 4-channel image (3-channel input is copied through)
        pixel_format: "BGRA32" or "RGBA32"
    """
    if image.ndim == 3 and image.shape[2] == 3:
        return _frozen(image.copy())
    if pixel_format == "RGBA32":
        return _frozen(image[..., 2::-1].copy())
    return _frozen(image[..., :3].copy())


def normalized_region(
    rect: tuple[int, int, int, int],
    reference_size: tuple[int, int] = (REFERENCE_WIDTH, REFERENCE_HEIGHT),
) -> tuple[float, float, float, float]:
    """Convert an (x, y, w, h) pixel rect at the reference resolution to crop fractions."""
    ref_w, ref_h = reference_size
    x, y, w, h = rect
    return x / ref_w, y / ref_h, w / ref_w, h / ref_h


def extract_region(
    frame: np.ndarray,
    rect: tuple[int, int, int, int],
    reference_size: tuple[int, int] = (REFERENCE_WIDTH, REFERENCE_HEIGHT),
) -> np.ndarray:
    """Rescale a frame to the reference resolution and crop a reference-pixel rect."""
    ref_w, ref_h = reference_size
    scaled = rescale(frame, ref_w, ref_h)
    return crop(scaled, *normalized_region(rect, reference_size))
