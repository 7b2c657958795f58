"""Translation and rotation estimation between two images.

Both estimators correlate one channel of each image in the frequency domain
and read the displacement off the correlation peak. Rotation is estimated on
log-polar resamplings of the images, where a rotation around the image center
becomes a shift along the angle axis.
"""
import logging
import math
from typing import Optional

from ._typing_utils import NumArray
from .benchmarking_util import debug_timing
from .correlation import argmax, spectral_correlation
from .geometry import Align, Displacement
from .image import as_channels, channel_as_float, image_size, validate_channel
from .sampling import SIZE_THETA, to_log_polar
from .transforms import resize_canvas


class UnsupportedSizeError(ValueError):
    """Raised when two images of different sizes cannot be registered."""


def wrap_peak_index(index: int, size: int) -> int:
    """Convert a circular FFT index into a signed offset.

    Indices past the middle of the axis stand for negative offsets.
    """
    if index > size // 2:
        return index - size
    return index


def _validate_pair(source: NumArray, source_channel: int,
                   target: NumArray, target_channel: int) -> None:
    as_channels(source, "Source image")
    as_channels(target, "Target image")
    validate_channel(source, source_channel, "source channel")
    validate_channel(target, target_channel, "target channel")


def find_translation(source: NumArray, source_channel: int,
                     target: NumArray, target_channel: int) -> Displacement:
    """Find the integer translation aligning the source onto the target.

    Args:
        source: (C, H, W) or (H, W) image to align
        source_channel: Channel of the source to use
        target: Reference image, same width and height as the source
        target_channel: Channel of the target to use

    Returns:
        Displacement that, applied to the source with apply_translation,
        aligns it with the target

    Raises:
        ValueError: If an image is missing or a channel index is invalid
        UnsupportedSizeError: If the images differ in width or height
    """
    _validate_pair(source, source_channel, target, target_channel)
    if image_size(source) != image_size(target):
        raise UnsupportedSizeError(
            f"Cannot register images of different size: {image_size(source)} vs {image_size(target)}"
        )

    width, height = image_size(source)
    logging.debug(f"Finding translation between images: {width}x{height}")

    with debug_timing("find_translation"):
        surface = spectral_correlation(
            channel_as_float(source, source_channel),
            channel_as_float(target, target_channel),
        )
        peak = argmax(surface)

    trans_x = wrap_peak_index(peak % width, width)
    trans_y = wrap_peak_index(peak // width, height)

    translation = Displacement(float(-trans_x), float(-trans_y))
    logging.debug(f"Found translation: ({translation.dx}, {translation.dy})")
    return translation


def find_rotation(source: NumArray, source_channel: int,
                  target: NumArray, target_channel: int,
                  previous_displacement: Optional[Displacement] = None) -> float:
    """Find the rotation (radians) aligning the source onto the target.

    Both channels are resampled in log-polar coordinates around their own
    midpoint and correlated. Only the first half of the flattened correlation
    surface (the smaller radial shifts) is searched for the peak.

    When the images differ in size and a previous displacement is given, the
    source is assumed to have been translated by it already: the target canvas
    is grown to the source size, anchored on the side the content was shifted
    away from.

    Args:
        source: (C, H, W) or (H, W) image to align
        source_channel: Channel of the source to use
        target: Reference image
        target_channel: Channel of the target to use
        previous_displacement: Translation already applied to the source

    Returns:
        Angle such that apply_rotation(source, ALL_CHANNELS, angle, ...) aligns
        the source with the target

    Raises:
        ValueError: If an image is missing or a channel index is invalid
        UnsupportedSizeError: If the sizes differ and no previous displacement is given
    """
    _validate_pair(source, source_channel, target, target_channel)

    if image_size(source) != image_size(target):
        if previous_displacement is None:
            raise UnsupportedSizeError(
                f"Cannot register images of different size: {image_size(source)} vs {image_size(target)}"
            )
        x_align = Align.LEFT if previous_displacement.dx > 0 else Align.RIGHT
        y_align = Align.TOP if previous_displacement.dy > 0 else Align.BOTTOM
        width, height = image_size(source)
        target = resize_canvas(as_channels(target), width, height, x_align, y_align)

    with debug_timing("find_rotation"):
        source_log_polar = to_log_polar(channel_as_float(source, source_channel))
        target_log_polar = to_log_polar(channel_as_float(target, target_channel))

        surface = spectral_correlation(source_log_polar, target_log_polar)
        peak = argmax(surface, surface.size // 2)

    # rotation is given along the theta axis
    rot_x = wrap_peak_index(peak % SIZE_THETA, SIZE_THETA)
    rotation = -rot_x * 2 * math.pi / SIZE_THETA
    logging.debug(f"Found rotation: {math.degrees(rotation)} degrees")
    return rotation

