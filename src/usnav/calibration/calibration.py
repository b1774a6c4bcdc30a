"""
Image-to-probe calibration.

The tracker reports the pose of the probe. To place an image in tracker
space, pixel coordinates are first mapped into the probe frame by the fixed
image-to-probe calibration, then by the recorded frame pose:

    image (pixels) -> probe: tform_image_to_probe
    probe -> tracker:        frame pose
    image -> tracker:        frame_pose @ tform_image_to_probe
    tracker -> image:        tform_probe_to_image @ inverse(frame_pose)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np

from usnav.constants import DEFAULT_IMAGE_TO_PROBE
from usnav.transforms.rigid import compose_transforms, invert_transform


@dataclass(frozen=True)
class ImageToProbeCalibration:
    """
    Immutable container for the image-to-probe calibration matrix.

    All transforms use LEFT multiplication:
        point_in_target = T @ point_in_source

    Attributes:
        tform_image_to_probe: 4x4 matrix from image pixel coordinates to probe
                              coordinates (mm). Shape [4, 4], dtype float64.
        tform_probe_to_image: Inverse of tform_image_to_probe.

    Note:
        While this dataclass is frozen, numpy array contents can still be
        modified in-place. Treat arrays as immutable by convention.
    """
    tform_image_to_probe: np.ndarray
    tform_probe_to_image: np.ndarray

    def __post_init__(self) -> None:
        """Validate matrix shapes and dtypes."""
        for name, matrix in (
            ("tform_image_to_probe", self.tform_image_to_probe),
            ("tform_probe_to_image", self.tform_probe_to_image),
        ):
            if matrix.shape != (4, 4):
                raise ValueError(f"{name} must have shape (4, 4), got {matrix.shape}")
            if matrix.dtype != np.float64:
                raise TypeError(f"{name} must have dtype float64, got {matrix.dtype}")
        if not np.allclose(self.tform_image_to_probe[3], [0.0, 0.0, 0.0, 1.0]):
            raise ValueError(
                f"tform_image_to_probe bottom row must be [0, 0, 0, 1], "
                f"got {self.tform_image_to_probe[3]}"
            )

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> "ImageToProbeCalibration":
        """
        Build a calibration from a 4x4 matrix.

        Args:
            matrix: 4x4 image-to-probe matrix.

        Returns:
            ImageToProbeCalibration with the inverse pre-computed.
        """
        tform = np.array(matrix, dtype=np.float64)
        if tform.shape != (4, 4):
            raise ValueError(f"matrix must have shape (4, 4), got {tform.shape}")
        return cls(
            tform_image_to_probe=tform,
            tform_probe_to_image=invert_transform(tform),
        )

    @classmethod
    def default(cls) -> "ImageToProbeCalibration":
        """Return the calibration of the recording setup."""
        tform = np.eye(4, dtype=np.float64)
        tform[0:3, :] = np.array(DEFAULT_IMAGE_TO_PROBE, dtype=np.float64)
        return cls.from_matrix(tform)

    @classmethod
    def from_csv(cls, filepath: Union[str, Path]) -> "ImageToProbeCalibration":
        """
        Load the calibration from a CSV file.

        The CSV file format contains:
        - Row 0: Header
        - Rows 1-4: 4x4 image-to-probe matrix, comma-separated

        Args:
            filepath: Path to the CSV file.

        Returns:
            ImageToProbeCalibration with the loaded matrix.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file format is invalid.
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Calibration file not found: {filepath}")

        with open(filepath, "r") as csv_file:
            lines = [line.strip("\n").split(",") for line in csv_file.readlines()]

        if len(lines) < 5:
            raise ValueError(
                f"Calibration file must have at least 5 rows, got {len(lines)}"
            )
        try:
            tform = np.array(lines[1:5]).astype(np.float64)
        except ValueError as e:
            raise ValueError(f"Calibration file {filepath} is not numeric: {e}") from e

        return cls.from_matrix(tform)

    def image_to_world(self, frame_pose: np.ndarray) -> np.ndarray:
        """
        Transform from image pixels to tracker space for one frame.

        Args:
            frame_pose: Probe-to-tracker pose of the frame, shape [..., 4, 4].

        Returns:
            frame_pose @ tform_image_to_probe, shape [..., 4, 4].
        """
        return compose_transforms(
            transform_a_to_b=self.tform_image_to_probe,
            transform_b_to_c=np.asarray(frame_pose, dtype=np.float64),
        )

    def world_to_image(self, frame_pose: np.ndarray) -> np.ndarray:
        """
        Transform from tracker space to image pixels for one frame.

        Args:
            frame_pose: Probe-to-tracker pose of the frame, shape [..., 4, 4].

        Returns:
            tform_probe_to_image @ inverse(frame_pose), shape [..., 4, 4].
            The third coordinate of a mapped point is its out-of-plane
            offset in image units.
        """
        return compose_transforms(
            transform_a_to_b=invert_transform(np.asarray(frame_pose, dtype=np.float64)),
            transform_b_to_c=self.tform_probe_to_image,
        )
