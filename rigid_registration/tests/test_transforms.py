"""Tests for applying translations and rotations."""
import math

import numpy as np
import pytest

from rigid_registration.geometry import Align, Displacement
from rigid_registration.image import ALL_CHANNELS
from rigid_registration.testutil import blob_image
from rigid_registration.transforms import (
    apply_rotation,
    apply_translation,
    resize_canvas,
    rotate_image,
)


@pytest.fixture
def image():
    """Three channels, 40 wide and 32 high."""
    return np.arange(3 * 32 * 40, dtype=np.uint16).reshape(3, 32, 40) + 1


def test_translation_preserves_size(image):
    moved = apply_translation(image, ALL_CHANNELS, Displacement(3, -2), preserve_size=True)
    assert moved.shape == image.shape
    assert moved.dtype == image.dtype
    np.testing.assert_array_equal(moved[:, :-2, 3:], image[:, 2:, :-3])
    assert not moved[:, :, :3].any()
    assert not moved[:, -2:, :].any()


def test_translation_grows_canvas(image):
    moved = apply_translation(image, ALL_CHANNELS, Displacement(3, -2), preserve_size=False)
    assert moved.shape == (3, 34, 43)
    np.testing.assert_array_equal(moved[:, 0:32, 3:43], image)


@pytest.mark.parametrize("displacement", [Displacement(0, 0), Displacement(0.4, -0.4), Displacement(-0.5, 0.2)])
def test_subpixel_translation_is_identity(image, displacement):
    assert apply_translation(image, ALL_CHANNELS, displacement, preserve_size=True) is image


def test_translation_rounds_half_up(image):
    moved = apply_translation(image, ALL_CHANNELS, Displacement(0.5, 0), preserve_size=False)
    assert moved.shape == (3, 32, 41)


def test_single_channel_translation(image):
    moved = apply_translation(image, 1, Displacement(2, 0), preserve_size=False)
    assert moved.shape == (3, 32, 42)
    np.testing.assert_array_equal(moved[1, :, 2:], image[1])
    np.testing.assert_array_equal(moved[0, :, :40], image[0])
    np.testing.assert_array_equal(moved[2, :, :40], image[2])


def test_single_channel_negative_translation_keeps_overlap(image):
    moved = apply_translation(image, 0, Displacement(-2, 0), preserve_size=True)
    assert moved.shape == image.shape
    np.testing.assert_array_equal(moved[0, :, :38], image[0, :, 2:])
    np.testing.assert_array_equal(moved[1], image[1])


def test_translation_of_2d_image(image):
    moved = apply_translation(image[0], ALL_CHANNELS, Displacement(1, 1), preserve_size=True)
    assert moved.shape == (32, 40)
    np.testing.assert_array_equal(moved[1:, 1:], image[0, :-1, :-1])


def test_translation_rejects_bad_arguments(image):
    with pytest.raises(ValueError):
        apply_translation(None, ALL_CHANNELS, Displacement(1, 1), True)
    with pytest.raises(ValueError):
        apply_translation(image, ALL_CHANNELS, None, True)
    with pytest.raises(ValueError):
        apply_translation(image, 3, Displacement(1, 1), True)


def test_small_rotation_is_identity(image):
    assert apply_rotation(image, ALL_CHANNELS, 0.0005, preserve_size=True) is image


def test_rotation_direction():
    raster = np.zeros((41, 41))
    raster[20, 30] = 1.0
    rotated = rotate_image(raster, math.pi / 2)
    assert rotated.shape == (41, 41)
    # +x rotates toward +y
    assert np.unravel_index(np.argmax(rotated), rotated.shape) == (30, 20)


def test_rotation_preserves_size_and_dtype(image):
    rotated = apply_rotation(image, ALL_CHANNELS, math.radians(20), preserve_size=True)
    assert rotated.shape == image.shape
    assert rotated.dtype == np.uint16


def test_rotation_grows_canvas(image):
    rotated = apply_rotation(image, ALL_CHANNELS, math.radians(30), preserve_size=False)
    assert rotated.shape[0] == 3
    assert rotated.shape[1] > 32
    assert rotated.shape[2] > 40


def _centroid(raster):
    yy, xx = np.mgrid[0:raster.shape[0], 0:raster.shape[1]]
    total = raster.sum()
    return (xx * raster).sum() / total, (yy * raster).sum() / total


def test_rotation_and_inverse_restore_content():
    image = blob_image(96, 96, seed=5, margin=0.35)
    angle = math.radians(12)
    rotated = apply_rotation(image, ALL_CHANNELS, angle, preserve_size=True)
    restored = apply_rotation(rotated, ALL_CHANNELS, -angle, preserve_size=True)
    x0, y0 = _centroid(image[0])
    x1, y1 = _centroid(restored[0])
    assert abs(x1 - x0) < 1.0
    assert abs(y1 - y0) < 1.0
    assert restored[0].sum() == pytest.approx(image[0].sum(), rel=0.05)


def test_single_channel_rotation_preserving_size(image):
    rotated = apply_rotation(image, 1, math.radians(20), preserve_size=True)
    assert rotated.shape == image.shape
    np.testing.assert_array_equal(rotated[0], image[0])
    np.testing.assert_array_equal(rotated[2], image[2])
    assert not np.array_equal(rotated[1], image[1])


def test_single_channel_rotation_growing_canvas(image):
    rotated = apply_rotation(image, 2, math.radians(30), preserve_size=False)
    channel_only = rotate_image(image[2], math.radians(30))
    assert rotated.shape == (3,) + channel_only.shape
    np.testing.assert_array_equal(rotated[2], channel_only)
    dh = (channel_only.shape[0] - 32) // 2
    dw = (channel_only.shape[1] - 40) // 2
    np.testing.assert_array_equal(rotated[0, dh:dh + 32, dw:dw + 40], image[0])


def test_rotation_of_single_channel_image(image):
    rotated = apply_rotation(image[:1], 0, math.radians(20), preserve_size=True)
    assert rotated.shape == (1, 32, 40)


def test_resize_canvas_grow_anchored_top_left():
    data = np.ones((4, 4), dtype=np.uint8)
    out = resize_canvas(data, 6, 5, Align.LEFT, Align.TOP)
    assert out.shape == (5, 6)
    assert out[:4, :4].all()
    assert out.sum() == 16


def test_resize_canvas_grow_anchored_bottom_right():
    data = np.ones((1, 4, 4), dtype=np.uint8)
    out = resize_canvas(data, 6, 5, Align.RIGHT, Align.BOTTOM)
    assert out.shape == (1, 5, 6)
    assert out[0, 1:5, 2:6].all()
    assert out.sum() == 16


def test_resize_canvas_shrink_keeps_anchored_corner():
    data = np.arange(16).reshape(4, 4)
    np.testing.assert_array_equal(resize_canvas(data, 2, 2, Align.RIGHT, Align.BOTTOM), data[2:, 2:])
    np.testing.assert_array_equal(resize_canvas(data, 2, 2, Align.LEFT, Align.TOP), data[:2, :2])


def test_resize_canvas_rejects_bad_alignment():
    with pytest.raises(ValueError):
        resize_canvas(np.ones((4, 4)), 6, 6, Align.TOP, Align.LEFT)
