"""Align an image onto a reference, averaging the estimate over channels."""
import logging
import math
from typing import Optional

from ._typing_utils import NumArray
from .estimation import find_rotation, find_translation
from .geometry import Displacement
from .image import ALL_CHANNELS, as_channels, channel_range
from .transforms import MIN_ROTATION_THRESHOLD, apply_rotation, apply_translation

MIN_TRANSLATION_THRESHOLD = 0.001
"""Translations whose squared length does not exceed this are not applied."""


def average_translation(image: NumArray, reference: NumArray, channel: int) -> Displacement:
    """Mean of the per-channel translations over the selected channel(s)."""
    channels = channel_range(image, channel)
    total = Displacement()
    for c in channels:
        total = total + find_translation(image, c, reference, c)
    return total.scaled(1.0 / len(channels))


def average_rotation(image: NumArray, reference: NumArray, channel: int,
                     previous_displacement: Optional[Displacement] = None) -> float:
    """Mean of the per-channel rotation angles over the selected channel(s)."""
    channels = channel_range(image, channel)
    total = sum(
        find_rotation(image, c, reference, c, previous_displacement) for c in channels
    )
    return total / len(channels)


def correct_translation(image: NumArray, reference: NumArray, channel: int = ALL_CHANNELS,
                        threshold: float = MIN_TRANSLATION_THRESHOLD) -> bool:
    """Translate the image in place so it lines up with the reference.

    The translation is averaged over the selected channel(s) and applied to
    every channel, keeping the image size. Nothing happens when the squared
    length of the averaged translation does not exceed the threshold.

    Returns:
        Whether a correction was applied
    """
    as_channels(image)
    as_channels(reference, "Reference image")

    translation = average_translation(image, reference, channel)
    if not translation.is_significant(threshold):
        logging.debug("Translation correction skipped (too small)")
        return False

    image[...] = apply_translation(image, ALL_CHANNELS, translation, preserve_size=True)
    logging.info(f"Applied translation correction: ({translation.dx}, {translation.dy})")
    return True


def correct_rotation(image: NumArray, reference: NumArray, channel: int = ALL_CHANNELS,
                     threshold: float = MIN_ROTATION_THRESHOLD) -> bool:
    """Rotate the image in place so it lines up with the reference.

    The angle is averaged over the selected channel(s) and applied to every
    channel, keeping the image size. Nothing happens when |angle| does not
    exceed the threshold.

    Returns:
        Whether a correction was applied
    """
    as_channels(image)
    as_channels(reference, "Reference image")

    angle = average_rotation(image, reference, channel)
    if abs(angle) <= threshold:
        logging.debug("Rotation correction skipped (too small)")
        return False

    image[...] = apply_rotation(image, ALL_CHANNELS, angle, preserve_size=True)
    logging.info(f"Applied rotation correction: {math.degrees(angle)} degrees")
    return True
