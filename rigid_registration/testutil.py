import contextlib
import pathlib
import tempfile
from typing import Generator, Optional, Sequence

import numpy as np

from .image_io import write_frame
from .parameters import RegistrationParameters


def blob_image(
    width: int = 128,
    height: int = 128,
    n_channels: int = 1,
    n_blobs: int = 6,
    sigma: float = 4.0,
    seed: int = 0,
    dtype: np.dtype = np.float64,
    margin: float = 0.25,
) -> np.ndarray:
    """A (C, H, W) image of gaussian blobs on a zero background.

    Blobs stay at least `margin` of the image size away from the borders so
    moderate shifts and rotations keep them in view. The layout is not
    rotationally symmetric.
    """
    rng = np.random.default_rng(seed)
    yy, xx = np.mgrid[0:height, 0:width].astype(np.float64)
    image = np.zeros((n_channels, height, width), dtype=np.float64)
    for c in range(n_channels):
        for _ in range(n_blobs):
            cx = rng.uniform(margin * width, (1 - margin) * width)
            cy = rng.uniform(margin * height, (1 - margin) * height)
            amplitude = rng.uniform(100.0, 200.0)
            image[c] += amplitude * np.exp(-((xx - cx) ** 2 + (yy - cy) ** 2) / (2 * sigma**2))
    if np.issubdtype(np.dtype(dtype), np.integer):
        return np.rint(image).astype(dtype)
    return image.astype(dtype)


def shifted(image: np.ndarray, dx: int, dy: int) -> np.ndarray:
    """Move (C, H, W) content by (dx, dy) without wrapping; vacated area is zero."""
    out = np.zeros_like(image)
    height, width = image.shape[-2:]
    src_y = slice(max(0, -dy), height - max(0, dy))
    src_x = slice(max(0, -dx), width - max(0, dx))
    dst_y = slice(max(0, dy), height - max(0, -dy))
    dst_x = slice(max(0, dx), width - max(0, -dx))
    out[..., dst_y, dst_x] = image[..., src_y, src_x]
    return out


@contextlib.contextmanager
def temporary_frame_directory_params(
    frames: Sequence[np.ndarray],
    name: str = "frames",
    suffix: str = ".tiff",
    **params,
) -> Generator[RegistrationParameters, None, None]:
    """Write frames to a temporary folder and yield parameters pointing at it.

    Frames are named frame_0000<suffix>, frame_0001<suffix>, ...; corrected
    frames go to a sibling output folder inside the same temporary directory.
    """
    with tempfile.TemporaryDirectory() as d:
        base_dir = pathlib.Path(d) / name
        base_dir.mkdir()
        for i, frame in enumerate(frames):
            write_frame(base_dir / f"frame_{i:04d}{suffix}", frame)

        output_folder: Optional[str] = params.pop("output_folder", None)
        yield RegistrationParameters(
            input_folder=str(base_dir),
            output_folder=output_folder or str(pathlib.Path(d) / f"{name}_registered"),
            **params,
        )
