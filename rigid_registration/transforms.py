"""Materialize translated or rotated copies of multi-channel images.

Both appliers grow the canvas to hold the whole transformed image and can crop
back to the original size. When a single channel is targeted the other
channels stay where they were, which allows per-channel alignment (e.g.
chromatic shift between channels).
"""
import logging
import math

import numpy as np
import skimage.transform

from ._typing_utils import NumArray
from .geometry import Align, Displacement
from .image import ALL_CHANNELS, as_channels, like_input, validate_channel

MIN_ROTATION_THRESHOLD = 0.001
"""Angles (radians) below this magnitude are not applied."""


def _cast_like(values: NumArray, dtype: np.dtype) -> NumArray:
    """Convert interpolated float samples back to the image's pixel type."""
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return np.clip(np.rint(values), info.min, info.max).astype(dtype)
    if dtype == np.bool_:
        return values >= 0.5
    return values.astype(dtype)


def _paste(canvas: NumArray, data: NumArray, x: int, y: int) -> None:
    """Copy a 2D raster into a 2D canvas at (x, y), clipping to the canvas."""
    height, width = data.shape
    canvas_h, canvas_w = canvas.shape
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(canvas_w, x + width), min(canvas_h, y + height)
    if x1 <= x0 or y1 <= y0:
        return
    canvas[y0:y1, x0:x1] = data[y0 - y:y1 - y, x0 - x:x1 - x]


def _crop(image: NumArray, width: int, height: int, x: int, y: int) -> NumArray:
    """Cut a width x height window starting at (x, y) out of a (C, H, W) image.

    Parts of the window outside the image are zero.
    """
    window = np.zeros((image.shape[0], height, width), dtype=image.dtype)
    for c in range(image.shape[0]):
        _paste(window[c], image[c], -x, -y)
    return window


def resize_canvas(image: NumArray, width: int, height: int,
                  x_align: Align = Align.CENTER, y_align: Align = Align.CENTER) -> NumArray:
    """Place the image data on a canvas of a new size without rescaling it.

    The content is anchored according to the alignments; anything that falls
    outside the new canvas is cropped and new area is zero.

    Args:
        image: (C, H, W) or (H, W) image
        width: New canvas width
        height: New canvas height
        x_align: Align.LEFT, Align.CENTER or Align.RIGHT
        y_align: Align.TOP, Align.CENTER or Align.BOTTOM

    Returns:
        Image of shape (C, height, width), or (height, width) for 2D input
    """
    channels = as_channels(image)
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid canvas size: {width}x{height}")
    if x_align in (Align.TOP, Align.BOTTOM) or y_align in (Align.LEFT, Align.RIGHT):
        raise ValueError(f"Invalid alignment: x={x_align}, y={y_align}")

    size_c, old_h, old_w = channels.shape
    ox = x_align.offset(old_w, width)
    oy = y_align.offset(old_h, height)

    canvas = np.zeros((size_c, height, width), dtype=channels.dtype)
    for c in range(size_c):
        _paste(canvas[c], channels[c], ox, oy)
    return like_input(canvas, image)


def rotate_image(image: NumArray, angle: float) -> NumArray:
    """Rotate every channel by angle radians around the image center.

    Positive angles move content from the +x axis toward the +y axis (clockwise
    on screen, since y points down). The canvas grows to the rotated bounding
    box; uncovered area is zero. Interpolation is bilinear.
    """
    channels = as_channels(image)
    # skimage rotates counter-clockwise on screen for positive degrees.
    degrees = -math.degrees(angle)
    rotated = np.stack([
        skimage.transform.rotate(
            channels[c].astype(np.float64),
            degrees,
            resize=True,
            order=1,
            mode='constant',
            cval=0.0,
            preserve_range=True,
        )
        for c in range(channels.shape[0])
    ])
    return like_input(_cast_like(rotated, channels.dtype), image)


def apply_translation(image: NumArray, channel: int, displacement: Displacement,
                      preserve_size: bool) -> NumArray:
    """Translate one channel (or all of them) by a rounded pixel offset.

    The canvas grows to (W + |dx|, H + |dy|). Selected channels land at
    (max(0, dx), max(0, dy)) and the remaining ones at (max(0, -dx), max(0, -dy)).
    With preserve_size the result is cropped back to W x H starting at
    (max(0, -dx), max(0, -dy)), so the region overlapping the original is kept.

    Args:
        image: (C, H, W) or (H, W) image
        channel: Channel to shift, or ALL_CHANNELS
        displacement: Offset to apply
        preserve_size: Whether to crop back to the input size

    Returns:
        The translated image, or the input itself when the rounded offset is zero

    Raises:
        ValueError: If the image or displacement is missing or the channel is invalid
    """
    channels = as_channels(image)
    if displacement is None:
        raise ValueError("Translation vector cannot be None")
    validate_channel(image, channel, allow_all=True)

    dx, dy = displacement.rounded()
    logging.debug(f"Applying translation: dx={dx} dy={dy}")
    if dx == 0 and dy == 0:
        return image

    size_c, height, width = channels.shape
    canvas = np.zeros((size_c, height + abs(dy), width + abs(dx)), dtype=channels.dtype)
    shifted_at = (max(0, dx), max(0, dy))
    others_at = (max(0, -dx), max(0, -dy))
    for c in range(size_c):
        x, y = shifted_at if channel == ALL_CHANNELS or c == channel else others_at
        canvas[c, y:y + height, x:x + width] = channels[c]

    if preserve_size:
        x0, y0 = others_at
        canvas = canvas[:, y0:y0 + height, x0:x0 + width].copy()
    return like_input(canvas, image)


def apply_rotation(image: NumArray, channel: int, angle: float,
                   preserve_size: bool) -> NumArray:
    """Rotate one channel (or all of them) around the image center.

    Rotation grows the bounding box to (W', H'). When every channel rotates,
    or the image has a single channel, preserve_size crops the result back to
    W x H centered on the size difference. When one channel out of several
    rotates, preserve_size crops that channel and leaves the others untouched;
    otherwise the others are centered on a canvas matching the rotated
    bounding box.

    Args:
        image: (C, H, W) or (H, W) image
        channel: Channel to rotate, or ALL_CHANNELS
        angle: Rotation in radians, same convention as rotate_image
        preserve_size: Whether to keep the input size

    Returns:
        The rotated image, or the input itself when |angle| is below
        MIN_ROTATION_THRESHOLD

    Raises:
        ValueError: If the image is missing or the channel is invalid
    """
    channels = as_channels(image)
    validate_channel(image, channel, allow_all=True)

    if abs(angle) < MIN_ROTATION_THRESHOLD:
        logging.debug("No rotation needed (angle too small)")
        return image

    size_c, height, width = channels.shape
    rotate_all = channel == ALL_CHANNELS or size_c == 1
    rotated = rotate_image(channels if rotate_all else channels[channel:channel + 1], angle)

    new_h, new_w = rotated.shape[1:]
    dw = (new_w - width) // 2
    dh = (new_h - height) // 2

    if rotate_all:
        if preserve_size:
            rotated = _crop(rotated, width, height, dw, dh)
        return like_input(rotated, image)

    if preserve_size:
        result = channels.copy()
        result[channel] = _crop(rotated, width, height, dw, dh)[0]
    else:
        result = np.zeros((size_c, new_h, new_w), dtype=channels.dtype)
        for c in range(size_c):
            if c == channel:
                result[c] = rotated[0]
            else:
                _paste(result[c], channels[c], dw, dh)
    return like_input(result, image)
