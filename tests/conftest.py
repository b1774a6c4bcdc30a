"""Shared fixtures: synthetic sequence metafiles and frame libraries."""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np
import pytest


def build_header(width, height, frame_count, poses, validity, transform_name="Probe"):
    """Return the text header of a sequence metafile."""
    lines = [
        "ObjectType = Image",
        "NDims = 3",
        "AnatomicalOrientation = RAI",
        "BinaryData = True",
        f"DimSize = {width} {height} {frame_count}",
        "ElementType = MET_UCHAR",
    ]
    for i, (pose, valid) in enumerate(zip(poses, validity)):
        values = " ".join(repr(float(v)) for v in np.asarray(pose).reshape(-1))
        lines.append(f"Seq_Frame{i:04d}_{transform_name}ToTrackerTransform = {values}")
        if valid is not None:
            status = "OK" if valid else "INVALID"
            lines.append(
                f"Seq_Frame{i:04d}_{transform_name}ToTrackerTransformStatus = {status}"
            )
        lines.append(f"Seq_Frame{i:04d}_Timestamp = {i * 0.05:.3f}")
    lines.append("ElementDataFile = LOCAL")
    return "\n".join(lines) + "\n"


@pytest.fixture
def make_sequence(tmp_path):
    """
    Factory writing a sequence metafile with a pixel payload.

    Frame i is filled with the byte value i (mod 256) so reads can be checked.
    """
    def _make(
        poses,
        validity,
        width=4,
        height=3,
        frame_count=None,
        transform_name="Probe",
        name="sequence.mha",
    ):
        if frame_count is None:
            frame_count = len(poses)
        header = build_header(width, height, frame_count, poses, validity, transform_name)
        payload = b"".join(
            np.full(width * height, i % 256, dtype=np.uint8).tobytes()
            for i in range(frame_count)
        )
        path = tmp_path / name
        path.write_bytes(header.encode("ascii") + payload)
        return path

    return _make


@pytest.fixture
def write_header(tmp_path):
    """Factory writing raw header lines to a file."""
    def _write(lines, name="header.mha"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write


@pytest.fixture
def make_library():
    """Factory building a FrameLibrary directly from poses and validity flags."""
    from usnav.types import Frame, FrameLibrary

    def _make(poses, validity, width=4, height=3):
        frames = tuple(
            Frame(index=i, pose=np.asarray(pose, dtype=np.float64), valid=bool(valid))
            for i, (pose, valid) in enumerate(zip(poses, validity))
        )
        return FrameLibrary(
            frames=frames,
            image_width=width,
            image_height=height,
            frame_count=len(frames),
            transform_tags=frozenset({"ProbeToTracker"}),
        )

    return _make


@pytest.fixture
def write_sequence(tmp_path):
    """
    Factory writing arbitrary header lines followed by a pixel payload.

    The header is closed with ElementDataFile = LOCAL; frame i of the
    payload is filled with the byte value i (mod 256).
    """
    def _write(lines, frame_count, width=4, height=3, name="raw.mha"):
        header = "\n".join(list(lines) + ["ElementDataFile = LOCAL"]) + "\n"
        payload = b"".join(
            np.full(width * height, i % 256, dtype=np.uint8).tobytes()
            for i in range(frame_count)
        )
        path = tmp_path / name
        path.write_bytes(header.encode("ascii") + payload)
        return path

    return _write
