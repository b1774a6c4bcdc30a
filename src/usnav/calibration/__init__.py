"""Calibration between the image plane and the tracked probe."""

from usnav.calibration.calibration import ImageToProbeCalibration

__all__ = [
    "ImageToProbeCalibration",
]
