"""Tests for frame reading and writing."""
import numpy as np
import pytest
import tifffile

from rigid_registration.image_io import list_frames, read_frame, write_frame


def test_tiff_keeps_dtype(tmp_path):
    image = np.arange(2 * 12 * 10, dtype=np.uint16).reshape(2, 12, 10)
    write_frame(tmp_path / "frame.tif", image)
    loaded = read_frame(tmp_path / "frame.tif")
    assert loaded.dtype == np.uint16
    np.testing.assert_array_equal(loaded, image)


def test_single_channel_gets_channel_axis(tmp_path):
    image = np.arange(12 * 10, dtype=np.uint16).reshape(12, 10)
    write_frame(tmp_path / "frame.tiff", image)
    assert read_frame(tmp_path / "frame.tiff").shape == (1, 12, 10)


def test_rgb_png_round_trip(tmp_path):
    image = np.random.default_rng(0).integers(0, 255, size=(3, 16, 20), dtype=np.uint8)
    write_frame(tmp_path / "frame.png", image)
    loaded = read_frame(tmp_path / "frame.png")
    assert loaded.shape == (3, 16, 20)
    np.testing.assert_array_equal(loaded, image)


def test_png_clips_to_uint8(tmp_path):
    image = np.array([[-5.0, 12.4], [300.0, 127.6]])
    image = np.tile(image, (4, 4))
    write_frame(tmp_path / "frame.png", image)
    loaded = read_frame(tmp_path / "frame.png")
    assert loaded.dtype == np.uint8
    np.testing.assert_array_equal(loaded[0, :2, :2], [[0, 12], [255, 128]])


def test_list_frames(tmp_path):
    for name in ["b.tif", "a.PNG", "c.jpeg", "notes.txt", "d.tiff"]:
        (tmp_path / name).write_bytes(b"")
    (tmp_path / "sub.tif").mkdir()
    assert [p.name for p in list_frames(tmp_path)] == ["a.PNG", "b.tif", "c.jpeg", "d.tiff"]


def test_write_rejects_missing_image(tmp_path):
    with pytest.raises(ValueError):
        write_frame(tmp_path / "frame.tif", None)


def test_tiny_rgb_png_is_channels_last(tmp_path):
    image = np.random.default_rng(1).integers(0, 255, size=(3, 2, 5), dtype=np.uint8)
    write_frame(tmp_path / "frame.png", image)
    loaded = read_frame(tmp_path / "frame.png")
    assert loaded.shape == (3, 2, 5)
    np.testing.assert_array_equal(loaded, image)


def test_tiny_rgb_tiff_uses_sample_axis(tmp_path):
    rgb = np.random.default_rng(2).integers(0, 255, size=(2, 5, 3), dtype=np.uint8)
    tifffile.imwrite(tmp_path / "frame.tif", rgb, photometric="rgb")
    loaded = read_frame(tmp_path / "frame.tif")
    assert loaded.shape == (3, 2, 5)
    np.testing.assert_array_equal(loaded, np.moveaxis(rgb, -1, 0))


def test_three_channel_tiff_stays_channels_first(tmp_path):
    image = np.arange(3 * 4 * 3, dtype=np.uint16).reshape(3, 4, 3)
    write_frame(tmp_path / "frame.tiff", image)
    loaded = read_frame(tmp_path / "frame.tiff")
    assert loaded.shape == (3, 4, 3)
    np.testing.assert_array_equal(loaded, image)
