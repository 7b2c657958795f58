"""Drift correction of a series of frames against a reference frame."""
import logging
import math
import pathlib
from dataclasses import dataclass, field
from typing import Callable, Optional

from tqdm import tqdm

from ._tensor_backend import use_tensor_backend
from ._typing_utils import NumArray
from .benchmarking_util import debug_timing
from .correction import average_rotation, average_translation
from .geometry import Displacement
from .image import ALL_CHANNELS, as_channels, validate_channel
from .image_io import list_frames, read_frame, write_frame
from .parameters import RegistrationParameters
from .transforms import apply_rotation, apply_translation


@dataclass
class FrameRegistration:
    """Outcome of registering one frame."""

    index: int
    path: pathlib.Path
    displacement: Optional[Displacement] = None
    """Total translation applied to the frame, if any."""
    angle: Optional[float] = None
    """Rotation applied to the frame (radians), if any."""
    error: Optional[str] = None

    @property
    def translated(self) -> bool:
        return self.displacement is not None

    @property
    def rotated(self) -> bool:
        return self.angle is not None

    @property
    def corrected(self) -> bool:
        return self.translated or self.rotated

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class RegistrationResult:
    frames: list[FrameRegistration] = field(default_factory=list)

    @property
    def frames_processed(self) -> int:
        return sum(1 for f in self.frames if not f.failed)

    @property
    def frames_corrected(self) -> int:
        return sum(1 for f in self.frames if f.corrected)

    @property
    def frames_failed(self) -> int:
        return sum(1 for f in self.frames if f.failed)

    @property
    def translation_count(self) -> int:
        return sum(1 for f in self.frames if f.translated)

    @property
    def rotation_count(self) -> int:
        return sum(1 for f in self.frames if f.rotated)

    @property
    def mean_translation_magnitude(self) -> float:
        magnitudes = [f.displacement.magnitude for f in self.frames if f.translated]
        return sum(magnitudes) / len(magnitudes) if magnitudes else 0.0

    @property
    def mean_rotation_angle(self) -> float:
        """Mean absolute applied rotation in radians."""
        angles = [abs(f.angle) for f in self.frames if f.rotated]
        return sum(angles) / len(angles) if angles else 0.0

    def summary(self) -> str:
        return (
            f"{self.frames_processed} frames processed, {self.frames_corrected} corrected, "
            f"{self.frames_failed} failed; {self.translation_count} translations "
            f"(mean {self.mean_translation_magnitude:.2f} px), {self.rotation_count} rotations "
            f"(mean {math.degrees(self.mean_rotation_angle):.2f} degrees)"
        )


@dataclass
class ProgressCallbacks:
    update_progress: Callable[[int, int], None]
    finished: Callable[[RegistrationResult], None]

    @classmethod
    def no_op(cls):
        return cls(
            update_progress=lambda _a, _b: None,
            finished=lambda _r: None,
        )


class FrameSeriesRegistration:
    def __init__(
        self,
        params: RegistrationParameters,
        callbacks: ProgressCallbacks = ProgressCallbacks.no_op(),
    ):
        self.params = params
        self.callbacks = callbacks
        self.tqdm_class = tqdm
        self._frame_paths: list[pathlib.Path] | None = None

    @property
    def frame_paths(self) -> list[pathlib.Path]:
        if self._frame_paths is None:
            self._frame_paths = list_frames(self.params.input_folder)
        return self._frame_paths

    def frame_indices(self) -> range:
        to_frame = self.params.to_frame
        if to_frame is None or to_frame > len(self.frame_paths):
            to_frame = len(self.frame_paths)
        return range(self.params.from_frame, to_frame)

    def crop_roi(self, image: NumArray) -> NumArray:
        """Cut the estimation region out of a frame (the whole frame without ROI)."""
        channels = as_channels(image)
        if self.params.roi is None:
            return channels
        x, y, width, height = self.params.roi
        if x + width > channels.shape[2] or y + height > channels.shape[1]:
            raise ValueError(
                f"ROI {self.params.roi} exceeds frame size {channels.shape[2]}x{channels.shape[1]}"
            )
        return channels[:, y:y + height, x:x + width]

    def run(self) -> RegistrationResult:
        with use_tensor_backend(self.params.tensor_engine, allow_fallback=False):
            return self._run()

    def _run(self) -> RegistrationResult:
        if self.params.reference_frame >= len(self.frame_paths):
            raise ValueError(
                f"Reference frame {self.params.reference_frame} not found; "
                f"{self.params.input_folder} holds {len(self.frame_paths)} frames"
            )
        reference_path = self.frame_paths[self.params.reference_frame]
        reference = self.crop_roi(read_frame(reference_path))
        validate_channel(reference, self.params.reference_channel, "reference channel", allow_all=True)
        logging.info(f"Registering frames {self.frame_indices()} against {reference_path.name}")

        if self.params.save_corrected_images:
            self.params.registered_folder.mkdir(parents=True, exist_ok=True)

        result = RegistrationResult()
        indices = self.frame_indices()
        for done, index in enumerate(self.tqdm_class(indices, desc="Registering frames"), start=1):
            result.frames.append(self.register_frame(index, reference))
            self.callbacks.update_progress(done, len(indices))

        logging.info(result.summary())
        self.callbacks.finished(result)
        return result

    def register_frame(self, index: int, reference: NumArray) -> FrameRegistration:
        """Register one frame, logging and recording failures instead of raising."""
        path = self.frame_paths[index]
        record = FrameRegistration(index=index, path=path)
        try:
            with debug_timing(f"register frame {index}"):
                work = self._correct(read_frame(path), reference, record)
            if record.corrected and self.params.save_corrected_images:
                write_frame(self.params.registered_folder / path.name, work)
        except Exception as e:
            logging.warning(f"Frame {index} ({path.name}) processing failed: {e}")
            record.error = str(e)
        return record

    def _correct(self, work: NumArray, reference: NumArray,
                 record: FrameRegistration) -> NumArray:
        params = self.params
        channel = params.reference_channel
        preserve = params.preserve_image_size
        reduced = self.crop_roi(work)

        if params.mode.corrects_translation:
            translation = average_translation(reduced, reference, channel)
            if translation.is_significant(params.translation_threshold):
                work = apply_translation(work, ALL_CHANNELS, translation, preserve)
                record.displacement = translation
                reduced = self.crop_roi(work)
                logging.info(
                    f"Frame {record.index}: applied translation correction "
                    f"({translation.dx}, {translation.dy})"
                )

        if params.mode.corrects_rotation:
            angle = average_rotation(reduced, reference, channel, record.displacement)
            if abs(angle) > params.rotation_threshold:
                work = apply_rotation(work, ALL_CHANNELS, angle, preserve)
                record.angle = angle
                logging.info(
                    f"Frame {record.index}: applied rotation correction {math.degrees(angle)} degrees"
                )

                # A grown canvas no longer matches the reference size.
                if params.mode.corrects_translation and preserve:
                    residual = average_translation(self.crop_roi(work), reference, channel)
                    if residual.is_significant(params.translation_threshold):
                        work = apply_translation(work, ALL_CHANNELS, residual, preserve)
                        record.displacement = (record.displacement or Displacement()) + residual

        return work
