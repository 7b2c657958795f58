"""Value types for registration results."""
import enum
import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Displacement:
    """Offset (dx, dy) in pixels required to align a source image onto a target."""

    dx: float = 0.0
    dy: float = 0.0

    @property
    def length_squared(self) -> float:
        return self.dx * self.dx + self.dy * self.dy

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.length_squared)

    def is_significant(self, threshold: float) -> bool:
        """Whether the squared length exceeds the threshold."""
        return self.length_squared > threshold

    def rounded(self) -> tuple[int, int]:
        """Integer pixel offsets, rounding halves up."""
        return math.floor(self.dx + 0.5), math.floor(self.dy + 0.5)

    def scaled(self, factor: float) -> "Displacement":
        return Displacement(self.dx * factor, self.dy * factor)

    def __add__(self, other: "Displacement") -> "Displacement":
        if not isinstance(other, Displacement):
            return NotImplemented
        return Displacement(self.dx + other.dx, self.dy + other.dy)

    def __neg__(self) -> "Displacement":
        return Displacement(-self.dx, -self.dy)


class Align(enum.Enum):
    """Anchor used when placing an image onto a canvas of a different size."""

    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"
    CENTER = "center"

    def offset(self, old_size: int, new_size: int) -> int:
        """Position of the old content along one axis of the new canvas."""
        if self in (Align.LEFT, Align.TOP):
            return 0
        if self in (Align.RIGHT, Align.BOTTOM):
            return new_size - old_size
        return (new_size - old_size) // 2
