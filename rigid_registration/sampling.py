"""Bilinear sampling and log-polar resampling of single-channel rasters."""
import math
from typing import Optional

import numpy as np

from ._typing_utils import FloatArray, NumArray

SIZE_THETA = 1080
"""Default number of angular sectors of a log-polar raster."""

SIZE_RHO = 360
"""Default number of radial rings of a log-polar raster."""


def _validate_raster(raster: NumArray) -> None:
    if raster is None:
        raise ValueError("Raster cannot be None")
    if np.ndim(raster) != 2:
        raise ValueError(f"Raster must be 2-dimensional, got shape {np.shape(raster)}")


def sample_bilinear(raster: NumArray, xs: NumArray, ys: NumArray) -> FloatArray:
    """Bilinearly interpolate a raster at fractional positions.

    Coordinates address pixel centers: (x, y) is shifted by -0.5 on both axes
    before interpolation. Positions whose base cell (floor of the shifted
    coordinate) is not strictly inside (0, W - 2) x (0, H - 2) sample as 0, so
    the outermost pixels never contribute.

    Args:
        raster: Single-channel raster of shape (H, W)
        xs: X coordinates (any shape)
        ys: Y coordinates, broadcastable against xs

    Returns:
        Float64 samples with the broadcast shape of xs and ys
    """
    _validate_raster(raster)
    height, width = raster.shape
    data = np.asarray(raster, dtype=np.float64)

    x, y = np.broadcast_arrays(
        np.asarray(xs, dtype=np.float64) - 0.5,
        np.asarray(ys, dtype=np.float64) - 0.5,
    )
    i = np.floor(x).astype(np.intp)
    j = np.floor(y).astype(np.intp)
    inside = (i > 0) & (i < width - 2) & (j > 0) & (j < height - 2)
    if width < 4 or height < 4:
        return np.zeros(x.shape, dtype=np.float64)

    # Out-of-range cells are masked below; clipping only keeps the gather legal.
    ic = np.clip(i, 0, width - 2)
    jc = np.clip(j, 0, height - 2)
    fx = x - i
    fy = y - j
    mx = 1.0 - fx
    my = 1.0 - fy

    value = (
        mx * my * data[jc, ic]
        + fx * my * data[jc, ic + 1]
        + mx * fy * data[jc + 1, ic]
        + fx * fy * data[jc + 1, ic + 1]
    )
    return np.where(inside, value, 0.0)


def pixel_value(raster: NumArray, x: float, y: float) -> float:
    """Bilinear sample of the raster at (x, y); 0 outside the strict interior."""
    return float(sample_bilinear(raster, np.asarray(x), np.asarray(y)))


def to_log_polar(
    raster: NumArray,
    center: Optional[tuple[int, int]] = None,
    size_theta: int = SIZE_THETA,
    size_rho: int = SIZE_RHO,
) -> FloatArray:
    """Resample a raster into (rho, theta) coordinates around a center.

    Column i is the angle 2*pi*i/size_theta, row j the radius j * drho where
    drho = sqrt(cx**2 + cy**2) / size_rho. Row 0 holds the center sample in
    every column. A rotation of the source around the center becomes a
    circular shift along the columns.

    Args:
        raster: Single-channel raster of shape (H, W)
        center: (cx, cy) pixel position; defaults to (W // 2, H // 2)
        size_theta: Number of angular sectors
        size_rho: Number of radial rings

    Returns:
        Float64 array of shape (size_rho, size_theta)

    Raises:
        ValueError: If the raster is invalid or a size is not positive
    """
    _validate_raster(raster)
    if size_theta <= 0 or size_rho <= 0:
        raise ValueError(f"Log-polar sizes must be positive, got {size_theta}x{size_rho}")

    height, width = raster.shape
    cx, cy = center if center is not None else (width // 2, height // 2)

    dtheta = 2 * math.pi / size_theta
    thetas = np.arange(size_theta) * dtheta
    drho = math.sqrt(cx * cx + cy * cy) / size_rho
    rhos = np.arange(1, size_rho) * drho

    log_polar = np.empty((size_rho, size_theta), dtype=np.float64)
    log_polar[0, :] = pixel_value(raster, cx, cy)
    log_polar[1:, :] = sample_bilinear(
        raster,
        cx + rhos[:, np.newaxis] * np.cos(thetas)[np.newaxis, :],
        cy + rhos[:, np.newaxis] * np.sin(thetas)[np.newaxis, :],
    )
    return log_polar
