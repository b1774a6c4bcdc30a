"""
Raw pixel extraction from the binary payload of a sequence metafile.

The payload follows the ``ElementDataFile = LOCAL`` header line and holds
all frames contiguously, each frame being width * height unsigned bytes.
"""

from pathlib import Path
from typing import Optional, Union

import numpy as np

from usnav.constants import ELEMENT_DATA_LOCAL
from usnav.errors import SequenceFileNotFoundError, SequenceReadError


def find_data_offset(path: Union[str, Path]) -> int:
    """
    Locate the first byte of the pixel payload.

    Args:
        path: Path to the sequence metafile.

    Returns:
        Byte offset just past the ``ElementDataFile = LOCAL`` line.

    Raises:
        SequenceFileNotFoundError: If the file does not exist.
        SequenceReadError: If the file cannot be read or has no
                           ``ElementDataFile = LOCAL`` line.
    """
    path = Path(path)
    if not path.exists():
        raise SequenceFileNotFoundError(f"Sequence file not found: {path}")

    marker = ELEMENT_DATA_LOCAL.encode("ascii")
    try:
        with open(path, "rb") as infile:
            for line in iter(infile.readline, b""):
                if marker in line:
                    return infile.tell()
    except OSError as e:
        raise SequenceReadError(f"Failed to read sequence file {path}: {e}") from e

    raise SequenceReadError(f"No '{ELEMENT_DATA_LOCAL}' line found in {path}")


def read_frame_pixels(
    path: Union[str, Path],
    frame_index: int,
    width: int,
    height: int,
    data_offset: Optional[int] = None,
) -> np.ndarray:
    """
    Read the pixels of one frame.

    Args:
        path: Path to the sequence metafile.
        frame_index: 0-based frame index.
        width: Image width in pixels.
        height: Image height in pixels.
        data_offset: Byte offset of the payload, as returned by
                     find_data_offset(). Looked up if None.

    Returns:
        Read-only uint8 array of shape [height, width].

    Raises:
        IndexError: If frame_index is negative.
        ValueError: If width or height is not positive.
        SequenceReadError: If the payload ends before the requested frame.
    """
    if frame_index < 0:
        raise IndexError(f"frame_index must be >= 0, got {frame_index}")
    if width <= 0 or height <= 0:
        raise ValueError(f"image dimensions must be positive, got {width}x{height}")

    path = Path(path)
    if data_offset is None:
        data_offset = find_data_offset(path)

    frame_size = width * height
    # Python ints do not overflow, so offsets past 2 GiB are fine
    offset = data_offset + frame_index * frame_size

    try:
        with open(path, "rb") as infile:
            infile.seek(offset)
            buffer = infile.read(frame_size)
    except OSError as e:
        raise SequenceReadError(f"Failed to read pixels from {path}: {e}") from e

    if len(buffer) != frame_size:
        raise SequenceReadError(
            f"Frame {frame_index} of {path} is truncated: "
            f"expected {frame_size} bytes at offset {offset}, got {len(buffer)}"
        )

    # Read-only: frombuffer over immutable bytes
    return np.frombuffer(buffer, dtype=np.uint8).reshape(height, width)
