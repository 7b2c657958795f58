"""Reading and writing frames as (C, H, W) arrays."""
import logging
import pathlib
from typing import Union

import numpy as np
import skimage.io
import tifffile

from ._typing_utils import NumArray
from .image import as_channels

FRAME_SUFFIXES = (".tif", ".tiff", ".png", ".jpg", ".jpeg")
TIFF_SUFFIXES = (".tif", ".tiff")

PathLike = Union[str, pathlib.Path]


def _is_tiff(path: pathlib.Path) -> bool:
    return path.suffix.lower() in TIFF_SUFFIXES


def read_frame(path: PathLike) -> NumArray:
    """Load an image file as a (C, H, W) array.

    The channel layout comes from the file: TIFF series whose axes end in
    samples ("S", e.g. RGB "YXS") and color images read through scikit-image
    are stored channels-last and get moved to channels-first.
    """
    path = pathlib.Path(path)
    if _is_tiff(path):
        with tifffile.TiffFile(path) as tif:
            series = tif.series[0]
            data = series.asarray()
            channels_last = series.axes.endswith("S")
    else:
        data = skimage.io.imread(path)
        channels_last = data.ndim == 3

    if data.ndim == 2:
        return data[np.newaxis, :, :]
    if data.ndim != 3:
        raise ValueError(f"Unsupported image layout {data.shape} in {path}")
    if channels_last:
        return np.moveaxis(data, -1, 0).copy()
    return data


def write_frame(path: PathLike, image: NumArray) -> None:
    """Save a (C, H, W) or (H, W) image.

    TIFF keeps the pixel type; other formats get channels-last uint8 data.
    """
    path = pathlib.Path(path)
    channels = as_channels(image)
    if channels.shape[0] == 1:
        data = channels[0]
    else:
        data = channels

    if _is_tiff(path):
        # Planes are channels, never interleaved RGB samples.
        tifffile.imwrite(path, data, photometric="minisblack")
        return

    if data.ndim == 3:
        data = np.moveaxis(data, 0, -1)
    if data.dtype != np.uint8:
        logging.debug(f"Clipping {data.dtype} data to uint8 for {path.name}")
        data = np.clip(np.rint(data), 0, 255).astype(np.uint8)
    skimage.io.imsave(path, data, check_contrast=False)


def list_frames(folder: PathLike) -> list[pathlib.Path]:
    """Image files of a folder sorted by name."""
    folder = pathlib.Path(folder)
    return sorted(
        p for p in folder.iterdir()
        if p.is_file() and p.suffix.lower() in FRAME_SUFFIXES
    )
