"""
Unit tests for gearscan/image_processing.py.

Covers:
- rescale / crop geometry, clamping and the identity crop
- black_mask truth table, idempotence and double inversion
- alpha_contrast threshold
- multiply_blend commutativity, identities and size mismatch
- to_three_channel channel order
- Every transform returns a new read-only array and leaves its input alone
"""
from __future__ import annotations

import numpy as np
import pytest

from gearscan.image_processing import (
    BLACK,
    WHITE,
    DimensionMismatch,
    alpha_contrast,
    black_mask,
    crop,
    extract_region,
    multiply_blend,
    normalized_region,
    rescale,
    to_three_channel,
)

THRESHOLD = 0.54


class TestRescale:

    def test_target_size(self, random_bgra):
        out = rescale(random_bgra, 128, 96)
        assert out.shape == (96, 128, 4)

    def test_uniform_stays_uniform(self, make_bgra):
        out = rescale(make_bgra(50, 25, (10, 20, 30, 255)), 100, 50)
        assert np.all(out == (10, 20, 30, 255))

    def test_same_size_is_a_copy(self, random_bgra):
        out = rescale(random_bgra, 64, 48)
        assert np.array_equal(out, random_bgra)
        assert out is not random_bgra

    def test_read_only_input(self, random_bgra):
        random_bgra.flags.writeable = False
        out = rescale(random_bgra, 32, 24)
        assert out.shape == (24, 32, 4)


class TestCrop:

    def test_identity_crop(self, random_bgra):
        assert np.array_equal(crop(random_bgra, 0, 0, 1, 1), random_bgra)

    def test_top_left_origin(self, make_bgra):
        image = make_bgra(100, 100)
        image[:10, :20] = WHITE

        out = crop(image, 0, 0, 0.2, 0.1)

        assert out.shape == (10, 20, 4)
        assert np.all(out == WHITE)

    def test_size_clamped_to_image(self, make_bgra):
        out = crop(make_bgra(100, 100), 0.5, 0.5, 1.0, 1.0)
        assert out.shape == (50, 50, 4)

    def test_origin_clamped(self, make_bgra):
        out = crop(make_bgra(100, 100), -0.3, 1.7, 0.5, 0.5)
        assert out.shape == (0, 50, 4)

    def test_rounds_to_nearest_pixel(self, make_bgra):
        # 10 * 0.26 = 2.6 -> 3, 10 * 0.44 = 4.4 -> 4
        out = crop(make_bgra(10, 10), 0.26, 0, 0.44, 1)
        assert out.shape == (10, 4, 4)


class TestBlackMask:

    @pytest.mark.parametrize("pixel,invert,expected", [
        ((10, 10, 10, 0), False, BLACK),
        ((10, 10, 10, 0), True, WHITE),
        ((200, 10, 10, 255), False, WHITE),
        ((200, 10, 10, 255), True, BLACK),
        ((137, 137, 137, 255), False, BLACK),  # 137/255 = 0.537 < 0.54
    ])
    def test_truth_table(self, make_bgra, pixel, invert, expected):
        out = black_mask(make_bgra(2, 2, pixel), THRESHOLD, invert=invert)
        assert np.all(out == expected)

    def test_output_is_opaque(self, random_bgra):
        out = black_mask(random_bgra, THRESHOLD)
        assert np.all(out[..., 3] == 255)

    def test_idempotent(self, random_bgra):
        once = black_mask(random_bgra, THRESHOLD)
        assert np.array_equal(black_mask(once, THRESHOLD), once)

    def test_double_inversion_equals_plain_mask(self, random_bgra):
        twice = black_mask(black_mask(random_bgra, THRESHOLD, invert=True), THRESHOLD, invert=True)
        assert np.array_equal(twice, black_mask(random_bgra, THRESHOLD))

    def test_input_untouched(self, random_bgra):
        before = random_bgra.copy()
        out = black_mask(random_bgra, THRESHOLD, invert=True)
        assert np.array_equal(random_bgra, before)
        assert not out.flags.writeable


class TestAlphaContrast:

    def test_threshold(self, make_bgra):
        image = make_bgra(2, 1)
        image[0, 0, 3] = 230   # 0.90 >= 0.88
        image[0, 1, 3] = 200   # 0.78 < 0.88

        out = alpha_contrast(image, 0.88)

        assert tuple(out[0, 0]) == WHITE
        assert tuple(out[0, 1]) == BLACK

    def test_colour_ignored(self, make_bgra):
        out = alpha_contrast(make_bgra(3, 3, (0, 0, 255, 255)), 0.88)
        assert np.all(out == WHITE)

    def test_requires_alpha(self):
        with pytest.raises(ValueError):
            alpha_contrast(np.zeros((4, 4, 3), dtype=np.uint8), 0.88)


class TestMultiplyBlend:

    def test_commutative(self, random_bgra):
        other = np.random.default_rng(99).integers(0, 256, random_bgra.shape, dtype=np.uint8)
        assert np.array_equal(multiply_blend(random_bgra, other), multiply_blend(other, random_bgra))

    def test_white_is_identity(self, random_bgra, make_bgra):
        assert np.array_equal(multiply_blend(random_bgra, make_bgra(64, 48, WHITE)), random_bgra)

    def test_black_zeroes_colour(self, random_bgra, make_bgra):
        out = multiply_blend(random_bgra, make_bgra(64, 48, (0, 0, 0, 0)))
        assert not out.any()

    def test_masks_combine_as_and(self, make_bgra):
        text = make_bgra(2, 1, WHITE)
        text[0, 0] = BLACK
        stencil = make_bgra(2, 1, WHITE)
        stencil[0, 1] = BLACK

        out = multiply_blend(text, stencil)

        assert tuple(out[0, 0]) == BLACK
        assert tuple(out[0, 1]) == BLACK

    def test_size_mismatch(self, make_bgra):
        with pytest.raises(DimensionMismatch):
            multiply_blend(make_bgra(4, 4), make_bgra(4, 5))

    def test_channel_mismatch(self):
        with pytest.raises(DimensionMismatch):
            multiply_blend(np.zeros((4, 4, 4), np.uint8), np.zeros((4, 4, 3), np.uint8))

    def test_mismatch_is_runtime_error(self):
        assert issubclass(DimensionMismatch, RuntimeError)


class TestToThreeChannel:

    def test_bgra_drops_alpha(self, make_bgra):
        out = to_three_channel(make_bgra(2, 2, (1, 2, 3, 4)))
        assert out.shape == (2, 2, 3)
        assert tuple(out[0, 0]) == (1, 2, 3)

    def test_rgba_becomes_bgr(self, make_bgra):
        out = to_three_channel(make_bgra(2, 2, (1, 2, 3, 4)), pixel_format="RGBA32")
        assert tuple(out[0, 0]) == (3, 2, 1)

    def test_three_channel_passthrough(self):
        image = np.full((2, 2, 3), 7, dtype=np.uint8)
        out = to_three_channel(image)
        assert np.array_equal(out, image)
        assert not out.flags.writeable


class TestRegions:

    def test_normalized_region(self):
        x, y, w, h = normalized_region((0, 399, 780, 80))
        assert x == 0
        assert y == pytest.approx(399 / 1369)
        assert w == pytest.approx(780 / 2560)
        assert h == pytest.approx(80 / 1369)

    def test_extract_region_at_reference_size(self, make_bgra):
        frame = make_bgra(100, 50)
        frame[20:30, 10:40] = WHITE

        out = extract_region(frame, (10, 20, 30, 10), reference_size=(100, 50))

        assert out.shape == (10, 30, 4)
        assert np.all(out == WHITE)

    def test_extract_region_from_smaller_capture(self, make_bgra):
        frame = make_bgra(50, 25, (9, 9, 9, 255))

        out = extract_region(frame, (10, 20, 30, 10), reference_size=(100, 50))

        assert out.shape == (10, 30, 4)
        assert np.all(out == (9, 9, 9, 255))
