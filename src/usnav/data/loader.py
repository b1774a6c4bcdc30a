"""
Sequence loading utilities.

This module turns a sequence metafile into an immutable FrameLibrary. The
library is built completely before it is returned, so callers can swap it
in atomically and never observe a partially-populated library.
"""

import logging
from pathlib import Path
from typing import Dict, Sequence, Union

from usnav.constants import DEFAULT_IMAGE_SUFFIX, DEFAULT_TRANSFORM_NAMES
from usnav.data.metafile import read_frame_transforms, read_header_dimensions
from usnav.transforms.rigid import from_flat_transform
from usnav.types import Frame, FrameLibrary, LoadResult

logger = logging.getLogger(__name__)


def load_sequence(
    path: Union[str, Path],
    transform_names: Sequence[str] = DEFAULT_TRANSFORM_NAMES,
    image_suffix: str = DEFAULT_IMAGE_SUFFIX,
    missing_status_is_valid: bool = False,
) -> LoadResult:
    """
    Load a sequence metafile into a FrameLibrary.

    Frames are keyed by the frame number of their header key. When a frame
    has records for several transform names (e.g. both ProbeToTracker and
    UltrasoundToTracker), the name listed first in transform_names supplies
    the pose and its status supplies the validity.

    Args:
        path: Path to the sequence metafile.
        transform_names: Transform names whose records carry frame poses.
        image_suffix: Suffix of the derived per-frame image filename.
        missing_status_is_valid: Validity given to frames without a status line.

    Returns:
        LoadResult holding the library. ``partial`` is True when a truncated
        transform record stopped parsing early; the frames read before it
        are kept.

    Raises:
        SequenceFileNotFoundError: If the file does not exist.
        SequenceReadError: If the file cannot be read.
        DimensionsNotFoundError: If the header has no valid DimSize record.
    """
    path = Path(path)
    cols, rows, count = read_header_dimensions(path)
    parsed = read_frame_transforms(
        path,
        transform_names=transform_names,
        image_suffix=image_suffix,
        missing_status_is_valid=missing_status_is_valid,
    )

    # One record per frame number: the first transform name in
    # transform_names wins, then the first record in the file.
    priority = {name: rank for rank, name in enumerate(transform_names)}
    chosen: Dict[int, int] = {}
    for slot, (number, source) in enumerate(zip(parsed.frame_numbers, parsed.sources)):
        current = chosen.get(number)
        if current is None or priority[source] < priority[parsed.sources[current]]:
            chosen[number] = slot
    if len(chosen) < len(parsed):
        logger.debug(
            "Kept %d of %d transform records, one per frame", len(chosen), len(parsed)
        )

    frames = tuple(
        Frame(
            index=number,
            pose=from_flat_transform(parsed.transforms[slot]),
            valid=parsed.validity[slot],
            image_path=parsed.filenames[slot],
            name=parsed.names[slot],
        )
        for number, slot in sorted(chosen.items())
    )

    library = FrameLibrary(
        frames=frames,
        image_width=cols,
        image_height=rows,
        frame_count=count,
        transform_tags=frozenset(parsed.tags),
        source_path=str(path),
    )

    if parsed.truncated:
        logger.warning(
            "Partial load of %s: %d of %d frames parsed", path, len(frames), count
        )
    elif len(frames) != count:
        logger.warning(
            "%s declares %d frames but has poses for %d", path, count, len(frames)
        )
    beyond = [frame.index for frame in frames if frame.index >= count]
    if beyond:
        logger.warning(
            "%s has %d frame numbers past its DimSize frame count %d",
            path, len(beyond), count,
        )
    logger.info(
        "Loaded %s: %dx%d, %d frames (%d valid), tags: %s",
        path, cols, rows, len(frames), sum(f.valid for f in frames),
        ", ".join(sorted(parsed.tags)),
    )

    return LoadResult(
        library=library,
        partial=parsed.truncated,
        frames_parsed=len(frames),
    )
