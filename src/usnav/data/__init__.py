"""Sequence metafile parsing and loading utilities."""

from usnav.data.loader import load_sequence
from usnav.data.metafile import (
    ParsedTransforms,
    get_dir,
    read_header_dimensions,
    read_frame_transforms,
    read_train_filenames,
)
from usnav.data.pixels import find_data_offset, read_frame_pixels

__all__ = [
    "load_sequence",
    "ParsedTransforms",
    "get_dir",
    "read_header_dimensions",
    "read_frame_transforms",
    "read_train_filenames",
    "find_data_offset",
    "read_frame_pixels",
]
