"""Rigid Registration Package.

This package estimates and corrects 2D translation and rotation between
images of the same field, e.g. successive frames of a fixed camera.

Main functionality:
- Translation estimation: FFT cross-correlation with wrap-around peak decoding
- Rotation estimation: log-polar resampling followed by the same correlation
- Transform application: shifted or rotated copies with canvas growth/cropping
- Frame-series drift correction against a reference frame

Images are numpy arrays shaped (channels, height, width); 2D arrays are
treated as single-channel images.
"""

from .correction import (
    MIN_TRANSLATION_THRESHOLD,
    correct_rotation,
    correct_translation,
)
from .correlation import argmax, spectral_correlation
from .estimation import (
    UnsupportedSizeError,
    find_rotation,
    find_translation,
    wrap_peak_index,
)
from .frame_series import FrameSeriesRegistration, ProgressCallbacks, RegistrationResult
from .geometry import Align, Displacement
from .image import ALL_CHANNELS
from .parameters import RegistrationMode, RegistrationParameters
from .sampling import SIZE_RHO, SIZE_THETA, pixel_value, to_log_polar
from .transforms import (
    MIN_ROTATION_THRESHOLD,
    apply_rotation,
    apply_translation,
    resize_canvas,
    rotate_image,
)
from ._tensor_backend import (
    TensorBackend,
    create_tensor_backend,
    get_tensor_backend,
    set_tensor_backend,
    use_tensor_backend,
)

__all__ = [
    'ALL_CHANNELS',
    'Align',
    'Displacement',
    'MIN_ROTATION_THRESHOLD',
    'MIN_TRANSLATION_THRESHOLD',
    'SIZE_RHO',
    'SIZE_THETA',
    'UnsupportedSizeError',
    'find_translation',
    'correct_translation',
    'apply_translation',
    'find_rotation',
    'correct_rotation',
    'apply_rotation',
    'resize_canvas',
    'rotate_image',
    'spectral_correlation',
    'argmax',
    'wrap_peak_index',
    'pixel_value',
    'to_log_polar',
    'FrameSeriesRegistration',
    'ProgressCallbacks',
    'RegistrationResult',
    'RegistrationMode',
    'RegistrationParameters',
    'create_tensor_backend',
    'get_tensor_backend',
    'set_tensor_backend',
    'use_tensor_backend',
    'TensorBackend',
]
