"""
Constants used throughout the usnav package.

These values follow the sequence-metafile layout written by the tracked
ultrasound acquisition software and should not be modified unless working
with a different file format.
"""

import sys

# Number of values in a serialized 3x4 transform (rows 0-2, columns 0-3)
FLAT_TRANSFORM_SIZE: int = 12

# Header keys of the sequence metafile
DIM_SIZE_KEY: str = "DimSize ="
ELEMENT_DATA_LOCAL: str = "ElementDataFile = LOCAL"
FRAME_KEY_PREFIX: str = "Seq_Frame"
FRAME_NUMBER_DIGITS: int = 4
TRANSFORM_TOKEN: str = "Transform"

# Transform names whose ToTracker records carry a frame pose
DEFAULT_TRANSFORM_NAMES: tuple = ("Probe", "Ultrasound")

# Transform status values
STATUS_OK: str = "OK"
STATUS_INVALID: str = "INVALID"

# Derived per-frame image filename suffix
DEFAULT_IMAGE_SUFFIX: str = ".png"

# Distance assigned to invalid frames so they always rank last
INVALID_DISTANCE: float = sys.float_info.max

# Image-to-probe calibration of the recording setup (image pixels to probe
# millimeters). Row-major 3x4; the bottom row is [0, 0, 0, 1].
DEFAULT_IMAGE_TO_PROBE: tuple = (
    (0.107535, 0.00094824, 0.0044213, -65.9013),
    (0.0044901, -0.00238041, -0.106347, -3.05698),
    (-0.000844189, 0.105271, -0.00244457, -17.1613),
)

# Euler angle convention used for 6DOF pose parameters
# ZYX means: first rotate around Z, then Y, then X
EULER_CONVENTION: str = "ZYX"
