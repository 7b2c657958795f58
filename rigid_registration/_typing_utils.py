"""Type aliases shared by the registration modules.

Images are numpy arrays laid out as (channels, height, width); a plain 2D
array is treated as a single-channel image.
"""
from typing import Any

import numpy as np
import numpy.typing as npt

NumArray = npt.NDArray[Any]
FloatArray = npt.NDArray[np.float64]
