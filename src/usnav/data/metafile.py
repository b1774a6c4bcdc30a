"""
Parser for the text header of tracked ultrasound sequence metafiles (.mha).

A sequence metafile starts with newline-delimited ``key = value`` records:

    ObjectType = Image
    NDims = 3
    DimSize = 640 480 10
    Seq_Frame0000_ProbeToTrackerTransform = r00 r01 r02 tx r10 ... 0 0 0 1
    Seq_Frame0000_ProbeToTrackerTransformStatus = OK
    ...
    ElementDataFile = LOCAL

followed by the raw 8-bit pixel payload of all frames. This module reads the
header only; see usnav.data.pixels for the payload.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from usnav.constants import (
    DEFAULT_IMAGE_SUFFIX,
    DEFAULT_TRANSFORM_NAMES,
    DIM_SIZE_KEY,
    ELEMENT_DATA_LOCAL,
    FLAT_TRANSFORM_SIZE,
    FRAME_KEY_PREFIX,
    FRAME_NUMBER_DIGITS,
    STATUS_INVALID,
    STATUS_OK,
    TRANSFORM_TOKEN,
)
from usnav.errors import (
    DimensionsNotFoundError,
    SequenceFileNotFoundError,
    SequenceReadError,
)

logger = logging.getLogger(__name__)

# Seq_Frame0012_ProbeToTrackerTransform = ...
# Seq_Frame0012_ProbeToTrackerTransformStatus = ...
_FRAME_RECORD = re.compile(
    r"^\s*Seq_Frame(?P<number>\d+)_(?P<name>\w+?)ToTrackerTransform"
    r"(?P<status>Status)?\s*="
)


@dataclass
class ParsedTransforms:
    """
    Per-frame records read from a sequence header.

    All lists are aligned: entry i of each describes the i-th transform
    record of the file.

    Attributes:
        transforms: 12 row-major values per record (rows 0-2 of the pose).
        filenames: Derived image filename per record.
        names: Header key per record, e.g. "Seq_Frame0000_ProbeToTrackerTransform".
        frame_numbers: Frame number encoded in the key.
        sources: Transform name of the record, e.g. "Probe".
        validity: Status per record, bound by frame number and transform name.
        tags: Distinct transform names found on any Seq_Frame...Transform line.
        truncated: True if parsing stopped at a record with fewer than 12 values.
    """
    transforms: List[List[float]] = field(default_factory=list)
    filenames: List[str] = field(default_factory=list)
    names: List[str] = field(default_factory=list)
    frame_numbers: List[int] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    validity: List[bool] = field(default_factory=list)
    tags: Set[str] = field(default_factory=set)
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.transforms)


def get_dir(filename: str, sep: str = os.sep) -> str:
    """
    Return the directory part of a path, including the trailing separator.

    Args:
        filename: Path as a string.
        sep: Separator to split on. Defaults to the platform separator.

    Returns:
        Everything up to and including the last separator, or "" if the path
        contains none.
    """
    pos = filename.rfind(sep)
    if pos == -1:
        return ""
    return filename[:pos + 1]


def _open_header(path: Path):
    if not path.exists():
        raise SequenceFileNotFoundError(f"Sequence file not found: {path}")
    try:
        # Header is ASCII; the binary payload after it is never decoded here
        return open(path, "r", encoding="ascii", errors="replace", newline=None)
    except OSError as e:
        raise SequenceReadError(f"Failed to open sequence file {path}: {e}") from e


def read_header_dimensions(path: Union[str, Path]) -> Tuple[int, int, int]:
    """
    Read the image dimensions and frame count from a sequence header.

    Lines are scanned until one contains ``DimSize =``; reading stops as soon
    as it is found. A blank line ends the header.

    Args:
        path: Path to the sequence metafile.

    Returns:
        (cols, rows, count): image width, image height and number of frames.

    Raises:
        SequenceFileNotFoundError: If the file does not exist.
        SequenceReadError: If the file cannot be read.
        DimensionsNotFoundError: If DimSize is absent or not exactly three
                                 integers.
    """
    path = Path(path)
    with _open_header(path) as header:
        try:
            for line in header:
                line = line.rstrip("\r\n")
                if not line:
                    break
                if DIM_SIZE_KEY not in line:
                    continue
                values = line.split("=", 1)[1].split()
                if len(values) != 3:
                    raise DimensionsNotFoundError(
                        f"DimSize in {path} must have 3 values, got {len(values)}: {line!r}"
                    )
                try:
                    cols, rows, count = (int(v) for v in values)
                except ValueError as e:
                    raise DimensionsNotFoundError(
                        f"DimSize in {path} is not integer: {line!r}"
                    ) from e
                if min(cols, rows, count) < 0:
                    raise DimensionsNotFoundError(
                        f"DimSize in {path} must be non-negative: {line!r}"
                    )
                logger.debug("Read dimensions %dx%d, %d frames from %s", cols, rows, count, path)
                return cols, rows, count
        except OSError as e:
            raise SequenceReadError(f"Failed to read sequence file {path}: {e}") from e

    raise DimensionsNotFoundError(f"No DimSize record found in {path}")


def _transform_tag(line: str) -> Optional[str]:
    start = line.find(FRAME_KEY_PREFIX)
    if start == -1:
        return None
    start += len(FRAME_KEY_PREFIX) + FRAME_NUMBER_DIGITS + 1
    end = line.find(TRANSFORM_TOKEN, start)
    if end == -1:
        return None
    return line[start:end]


def _parse_status(value: str) -> Optional[bool]:
    # INVALID contains no "OK", so the order of checks does not matter
    if STATUS_OK in value:
        return True
    if STATUS_INVALID in value:
        return False
    return None


def read_frame_transforms(
    path: Union[str, Path],
    transform_names: Sequence[str] = DEFAULT_TRANSFORM_NAMES,
    image_suffix: str = DEFAULT_IMAGE_SUFFIX,
    missing_status_is_valid: bool = False,
) -> ParsedTransforms:
    """
    Read per-frame transforms, validity flags and transform tags.

    For every header line:
    - ``Seq_Frame<NNNN>_<Name>ToTrackerTransform = v0 ... v11 [...]`` with
      <Name> in transform_names adds one record. If fewer than 12 values
      follow the ``=``, parsing stops and the records read so far are
      returned with ``truncated=True``.
    - ``Seq_Frame<NNNN>_<Name>ToTrackerTransformStatus = OK|INVALID`` sets
      the validity of the record with the same frame number and name. Any
      other status value is ignored.
    - Any line containing both "Seq_Frame" and "Transform" adds the text
      between "Seq_Frame<NNNN>_" and "Transform" to the tag set.
    - ``ElementDataFile = LOCAL`` (or a blank line) ends the header.

    Args:
        path: Path to the sequence metafile.
        transform_names: Transform names whose records carry frame poses.
        image_suffix: Suffix of the derived per-frame image filename.
        missing_status_is_valid: Validity given to records that have no
                                 status line.

    Returns:
        ParsedTransforms with aligned per-record lists.

    Raises:
        SequenceFileNotFoundError: If the file does not exist.
        SequenceReadError: If the file cannot be read.
    """
    path = Path(path)
    dir_name = get_dir(str(path))
    wanted = set(transform_names)
    parsed = ParsedTransforms()

    # (frame number, transform name) -> record position
    record_slots: Dict[Tuple[int, str], int] = {}
    statuses: Dict[Tuple[int, str], bool] = {}

    with _open_header(path) as header:
        try:
            for line in header:
                line = line.rstrip("\r\n")
                if not line:
                    break
                if ELEMENT_DATA_LOCAL in line:
                    break

                if FRAME_KEY_PREFIX in line and TRANSFORM_TOKEN in line:
                    tag = _transform_tag(line)
                    if tag is not None:
                        parsed.tags.add(tag)

                match = _FRAME_RECORD.match(line)
                if match is None or match.group("name") not in wanted:
                    continue

                key = (int(match.group("number")), match.group("name"))
                key_text, value_text = line.split("=", 1)

                if match.group("status"):
                    status = _parse_status(value_text)
                    if status is None:
                        logger.debug("Ignoring status %r on %s", value_text.strip(), key_text.strip())
                        continue
                    statuses[key] = status
                    continue

                tokens = value_text.split()
                if len(tokens) < FLAT_TRANSFORM_SIZE:
                    logger.warning(
                        "Transform record %s has %d values, expected %d; "
                        "stopping after %d frames",
                        key_text.strip(), len(tokens), FLAT_TRANSFORM_SIZE, len(parsed),
                    )
                    parsed.truncated = True
                    break
                try:
                    values = [float(t) for t in tokens[:FLAT_TRANSFORM_SIZE]]
                except ValueError:
                    logger.warning(
                        "Transform record %s is not numeric; stopping after %d frames",
                        key_text.strip(), len(parsed),
                    )
                    parsed.truncated = True
                    break

                name = key_text.strip()
                record_slots[key] = len(parsed.transforms)
                parsed.transforms.append(values)
                parsed.names.append(name)
                parsed.frame_numbers.append(key[0])
                parsed.sources.append(key[1])
                parsed.filenames.append(dir_name + name + image_suffix)
        except OSError as e:
            raise SequenceReadError(f"Failed to read sequence file {path}: {e}") from e

    parsed.validity = [missing_status_is_valid] * len(parsed.transforms)
    for key, slot in record_slots.items():
        if key in statuses:
            parsed.validity[slot] = statuses[key]
        else:
            logger.warning(
                "No status record for %s; marking it %s",
                parsed.names[slot], STATUS_OK if missing_status_is_valid else STATUS_INVALID,
            )

    logger.debug(
        "Parsed %d transform records (%d valid) from %s",
        len(parsed), sum(parsed.validity), path,
    )
    return parsed


def read_train_filenames(path: Union[str, Path]) -> Tuple[str, List[str]]:
    """
    Read a plain list of image filenames, one per line.

    Reading stops at the first blank line.

    Args:
        path: Path to the list file.

    Returns:
        (dir_name, filenames): directory of the list file (with trailing
        separator) and the names in file order.

    Raises:
        SequenceFileNotFoundError: If the file does not exist.
        SequenceReadError: If the file cannot be read.
    """
    path = Path(path)
    filenames: List[str] = []
    with _open_header(path) as list_file:
        try:
            for line in list_file:
                line = line.rstrip("\r\n")
                if not line:
                    break
                filenames.append(line)
        except OSError as e:
            raise SequenceReadError(f"Failed to read list file {path}: {e}") from e
    return get_dir(str(path)), filenames
