"""
usnav - Navigate a tracked pointer through a recorded ultrasound sequence.

This package provides:
- Core types for frames, frame libraries and match results
- A parser for tracked ultrasound sequence metafiles (.mha)
- Transform utilities for flat 3x4 and 4x4 pose conversions
- Geometry routines for point-to-plane and orientation distances
- A frame matcher ranking recorded frames against a live pointer pose
- A frame navigator with wrap-around and skip-to-valid/invalid
- A session facade and host adapter tying these together
"""

from usnav.types import (
    Frame,
    FrameLibrary,
    LoadResult,
    DistanceScore,
    MatchResult,
    FrameImage,
    PoseUpdate,
    PoseUpdateKind,
)
from usnav.errors import (
    SequenceLoadError,
    SequenceFileNotFoundError,
    SequenceReadError,
    DimensionsNotFoundError,
)
from usnav.constants import INVALID_DISTANCE
from usnav.session import NavigationSession

__version__ = "0.1.0"

__all__ = [
    # Types
    "Frame",
    "FrameLibrary",
    "LoadResult",
    "DistanceScore",
    "MatchResult",
    "FrameImage",
    "PoseUpdate",
    "PoseUpdateKind",
    # Errors
    "SequenceLoadError",
    "SequenceFileNotFoundError",
    "SequenceReadError",
    "DimensionsNotFoundError",
    # Constants
    "INVALID_DISTANCE",
    # Session
    "NavigationSession",
]
