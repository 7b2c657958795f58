"""Spectral (FFT-based) cross-correlation of two equal-sized rasters."""
from contextlib import contextmanager
from typing import Any, Optional
import warnings

import numpy as np

from ._tensor_backend import get_tensor_backend
from ._typing_utils import FloatArray, NumArray

# Constants for memory management
MAX_ARRAY_SIZE_GB = 2  # Maximum single array size in GB


@contextmanager
def managed_memory():
    """Release backend memory once the block exits."""
    backend = get_tensor_backend()
    try:
        yield backend
    finally:
        backend.cleanup_memory()


def validate_signal_pair(a: Any, b: Any) -> None:
    """Validate two signals for spectral correlation.

    Raises:
        ValueError: If a signal is missing, not 2D, empty, or the shapes differ
    """
    if a is None or b is None:
        raise ValueError("Input arrays cannot be None")
    if np.ndim(a) != 2 or np.ndim(b) != 2:
        raise ValueError("Signals must be 2-dimensional")
    if np.shape(a) != np.shape(b):
        raise ValueError(f"Signals must have same shape. Got {np.shape(a)} and {np.shape(b)}")
    if np.size(a) == 0:
        raise ValueError(f"Invalid dimensions: {np.shape(a)}")

    array_size_gb = np.asarray(a).nbytes / (1024**3)
    if array_size_gb > MAX_ARRAY_SIZE_GB:
        warnings.warn(f"Large signal detected ({array_size_gb:.1f} GB). Consider downsampling.")


def spectral_correlation(a: NumArray, b: NumArray) -> FloatArray:
    """Cross-correlate two real 2D signals in the frequency domain.

    The surface is IFFT(FFT(a) * conj(FFT(b))). The cross-power spectrum is
    not normalized by its magnitude, so this is plain cross-correlation rather
    than phase correlation. The inverse transform carries the 1/N backward
    scaling.

    Args:
        a: First signal, shape (H, W)
        b: Second signal, same shape as a

    Returns:
        Real correlation surface of shape (H, W). The value at (row, col) is
        sum over n of a[n + (row, col)] * b[n], with circular indexing.

    Raises:
        ValueError: If the signals are invalid or incompatible
    """
    validate_signal_pair(a, b)

    with managed_memory() as backend:
        a_backend = backend.asarray(a, dtype=np.float64)
        b_backend = backend.asarray(b, dtype=np.float64)

        fa = backend.fft2(a_backend)
        fb = backend.fft2(b_backend)

        cross_power = fa * backend.conjugate(fb)
        surface = backend.asnumpy(backend.ifft2(cross_power))

    return np.ascontiguousarray(surface.real)


def argmax(surface: NumArray, n: Optional[int] = None) -> int:
    """Flat index of the largest value among the first n samples of the surface.

    The surface is read in row-major order. Ties resolve to the lowest index.

    Raises:
        ValueError: If the surface is missing or n is out of range
    """
    if surface is None:
        raise ValueError("Correlation surface cannot be None")
    flat = np.ravel(surface)
    if n is None:
        n = flat.size
    if n <= 0 or n > flat.size:
        raise ValueError(f"Invalid search length {n} for surface of size {flat.size}")
    return int(np.argmax(flat[:n]))
