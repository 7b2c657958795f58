import enum
import os
import pathlib
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator

from .image import ALL_CHANNELS


class RegistrationMode(enum.Enum):
    translation = "translation"
    rotation = "rotation"
    translation_and_rotation = "translation_and_rotation"

    @property
    def corrects_translation(self) -> bool:
        return self in (RegistrationMode.translation, RegistrationMode.translation_and_rotation)

    @property
    def corrects_rotation(self) -> bool:
        return self in (RegistrationMode.rotation, RegistrationMode.translation_and_rotation)


def input_path_exists(path: str) -> str:
    """Pydantic validator to check the path exists."""
    if not os.path.exists(path):
        raise ValueError(f"Input folder does not exist: {path}")

    return path


class RegistrationParameters(
    BaseModel,
    use_attribute_docstrings=True,
):
    """Parameters for drift correction of a series of frames."""

    input_folder: Annotated[str, AfterValidator(input_path_exists)]
    """A folder containing the frames of one camera field, one image file per frame.

    Frames are ordered by file name.
    """

    output_folder: Optional[str] = None
    """Where corrected frames are written; defaults to `<input_folder>_registered`."""

    mode: RegistrationMode = RegistrationMode.translation_and_rotation
    """Which misalignment to correct.

    In translation_and_rotation mode the translation is corrected first, then
    the rotation, then any translation left over after rotating.
    """

    from_frame: int = Field(default=0, ge=0)
    """Index of the first frame to register."""

    to_frame: Optional[int] = None
    """Index one past the last frame to register; `None` means up to the last frame."""

    reference_frame: int = Field(default=0, ge=0)
    """Index of the frame every other frame is aligned to."""

    reference_channel: int = Field(default=0, ge=ALL_CHANNELS)
    """Channel used to estimate the misalignment, or -1 to average over all channels."""

    translation_threshold: float = Field(default=0.001, ge=0)
    """Translations whose squared length is at most this are not applied."""

    rotation_threshold: float = Field(default=0.001, ge=0)
    """Rotations (radians) whose magnitude is at most this are not applied."""

    preserve_image_size: bool = True
    """Crop corrected frames back to their original size."""

    save_corrected_images: bool = True
    """Write frames that needed a correction to the output folder."""

    roi: Optional[tuple[int, int, int, int]] = None
    """Optional (x, y, width, height) region used for estimation.

    Corrections are always applied to the whole frame.
    """

    tensor_engine: Literal["numpy", "torch", "cupy"] = "numpy"
    """Array library used for the FFTs."""

    verbose: bool = False
    """Show debug-level logging."""

    @field_validator("roi")
    @classmethod
    def _check_roi(cls, roi: Optional[tuple[int, int, int, int]]) -> Optional[tuple[int, int, int, int]]:
        if roi is None:
            return roi
        x, y, width, height = roi
        if x < 0 or y < 0:
            raise ValueError(f"ROI origin must be non-negative, got ({x}, {y})")
        if width <= 0 or height <= 0:
            raise ValueError(f"ROI size must be positive, got {width}x{height}")
        return roi

    @model_validator(mode="after")
    def _check_frame_range(self) -> "RegistrationParameters":
        if self.to_frame is not None:
            if self.to_frame <= self.from_frame:
                raise ValueError(
                    f"to_frame must be greater than from_frame, got {self.to_frame} <= {self.from_frame}"
                )
            if not self.from_frame <= self.reference_frame < self.to_frame:
                raise ValueError(
                    f"Reference frame must be within frame range [{self.from_frame}, {self.to_frame}), "
                    f"got: {self.reference_frame}"
                )
        elif self.reference_frame < self.from_frame:
            raise ValueError(
                f"Reference frame must not precede from_frame, got {self.reference_frame} < {self.from_frame}"
            )
        return self

    @property
    def registered_folder(self) -> pathlib.Path:
        """Path to folder containing corrected frames."""
        if self.output_folder is not None:
            return pathlib.Path(self.output_folder)
        return pathlib.Path(self.input_folder.rstrip("/\\") + "_registered")

    @classmethod
    def from_json_file(cls, json_path: str) -> "RegistrationParameters":
        """Create parameters from a JSON file.

        Args:
            json_path: Path to JSON file containing parameters

        Returns:
            RegistrationParameters: New instance with values from JSON
        """
        with open(json_path) as f:
            return cls.model_validate_json(f.read())

    def to_json_file(self, json_path: str) -> None:
        """Save parameters to a JSON file.

        Args:
            json_path: Path where JSON file should be saved
        """
        with open(json_path, "w") as f:
            f.write(self.model_dump_json(indent=2))
