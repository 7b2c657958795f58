"""Helpers for multi-channel image buffers.

Images are numpy arrays of shape (C, H, W). A 2D array is accepted as a
single-channel image; functions that return a new image give it back in the
same dimensionality they received.
"""
from typing import Optional

import numpy as np

from ._typing_utils import FloatArray, NumArray

ALL_CHANNELS = -1
"""Channel selector meaning "every channel of the image"."""


def as_channels(image: Optional[NumArray], name: str = "Image") -> NumArray:
    """Return a (C, H, W) view of the image.

    Raises:
        ValueError: If the image is None or not 2D/3D
    """
    if image is None:
        raise ValueError(f"{name} cannot be None")
    if not hasattr(image, "ndim") or not hasattr(image, "shape"):
        raise TypeError(f"{name} must be a numpy array, got {type(image)}")
    if image.ndim == 2:
        return image[np.newaxis, :, :]
    if image.ndim != 3:
        raise ValueError(
            f"{name} must be 2D (H, W) or 3D (C, H, W), got shape {image.shape}"
        )
    if image.shape[1] == 0 or image.shape[2] == 0:
        raise ValueError(f"{name} cannot be empty, got shape {image.shape}")
    return image


def like_input(result: NumArray, original: NumArray) -> NumArray:
    """Drop the channel axis again if the original image was 2D."""
    if original.ndim == 2:
        return result[0]
    return result


def num_channels(image: NumArray) -> int:
    return as_channels(image).shape[0]


def image_size(image: NumArray) -> tuple[int, int]:
    """(width, height) of the image."""
    channels = as_channels(image)
    return channels.shape[2], channels.shape[1]


def validate_channel(image: NumArray, channel: int, name: str = "channel",
                     allow_all: bool = False) -> None:
    """Check a channel index against the image's channel count.

    Raises:
        ValueError: If the index is out of range
    """
    size_c = num_channels(image)
    if allow_all and channel == ALL_CHANNELS:
        return
    if not isinstance(channel, (int, np.integer)) or isinstance(channel, bool):
        raise ValueError(f"Invalid {name}: {channel!r}")
    if channel < 0 or channel >= size_c:
        raise ValueError(f"Invalid {name}: {channel} (image has {size_c} channels)")


def channel_range(image: NumArray, channel: int) -> range:
    """Channels covered by a selector: one index, or every channel for ALL_CHANNELS."""
    validate_channel(image, channel, allow_all=True)
    if channel == ALL_CHANNELS:
        return range(num_channels(image))
    return range(channel, channel + 1)


def channel_as_float(image: NumArray, channel: int) -> FloatArray:
    """Copy one channel as a float64 raster."""
    return np.asarray(as_channels(image)[channel], dtype=np.float64)
