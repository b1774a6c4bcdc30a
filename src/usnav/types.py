"""
Core type definitions for the usnav package.

These dataclasses define the standard interfaces for data flow between the
parser, the matcher, the navigator and the host application.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple
import numpy as np

from usnav.constants import STATUS_INVALID, STATUS_OK


@dataclass(frozen=True)
class Frame:
    """
    One entry of a recorded tracked ultrasound sequence.

    WARNING: While this dataclass is frozen, numpy array contents can still
    be modified in-place. Treat the pose as immutable by convention.

    Attributes:
        index: Frame number from the header key (Seq_Frame<NNNN>), which is
               also the position of the frame in the pixel payload.
        pose: 4x4 float64 pose of the image plane in tracker coordinates.
              Bottom row is always [0, 0, 0, 1].
        valid: Whether the tracking data for this frame was reliable ("OK").
        image_path: Derived per-frame image filename (naming convention only).
        name: Header key the pose was read from, e.g.
              "Seq_Frame0000_ProbeToTrackerTransform".
    """
    index: int
    pose: np.ndarray
    valid: bool
    image_path: str = ""
    name: str = ""

    def __post_init__(self) -> None:
        """Validate the pose shape."""
        if self.pose.shape != (4, 4):
            raise ValueError(
                f"pose must have shape (4, 4), got {self.pose.shape}"
            )
        if self.index < 0:
            raise ValueError(f"index must be >= 0, got {self.index}")

    @property
    def status(self) -> str:
        """Return "OK" for a valid frame and "INVALID" otherwise."""
        return STATUS_OK if self.valid else STATUS_INVALID


@dataclass(frozen=True)
class FrameLibrary:
    """
    Immutable snapshot of a loaded sequence.

    The whole library is replaced, never mutated, when a new file is loaded.

    Attributes:
        frames: Parsed frames sorted by frame number (Frame.index). Frame
                numbers without a pose record are absent.
        image_width: Image width in pixels (first DimSize value).
        image_height: Image height in pixels (second DimSize value).
        frame_count: Number of frames declared by DimSize. May exceed the
                     number of parsed frames after a truncated load.
        transform_tags: Distinct transform names found in the header, e.g.
                        "ProbeToTracker" for both the transform and its
                        status record.
        source_path: Path of the sequence file.
    """
    frames: Tuple[Frame, ...] = ()
    image_width: int = 0
    image_height: int = 0
    frame_count: int = 0
    transform_tags: FrozenSet[str] = frozenset()
    source_path: str = ""

    def __post_init__(self) -> None:
        """Validate dimensions and frame indexing."""
        if self.image_width < 0 or self.image_height < 0:
            raise ValueError(
                f"image dimensions must be non-negative, "
                f"got {self.image_width}x{self.image_height}"
            )
        if self.frame_count < 0:
            raise ValueError(f"frame_count must be >= 0, got {self.frame_count}")
        for previous, frame in zip(self.frames, self.frames[1:]):
            if frame.index <= previous.index:
                raise ValueError(
                    f"frames must have increasing indices, "
                    f"got {frame.index} after {previous.index}"
                )
        object.__setattr__(
            self, "_by_index", {frame.index: frame for frame in self.frames}
        )

    @classmethod
    def empty(cls) -> "FrameLibrary":
        """Return the library used before any sequence is loaded."""
        return cls()

    @property
    def num_parsed_frames(self) -> int:
        """Return the number of frames with a parsed pose."""
        return len(self.frames)

    def frame_at(self, index: int) -> Optional[Frame]:
        """Return the frame with the given frame number, or None if unparsed."""
        return self._by_index.get(index)

    def is_valid(self, index: int) -> bool:
        """
        Return the validity flag of a frame.

        Frames declared by DimSize but never parsed count as invalid.
        """
        frame = self.frame_at(index)
        return frame is not None and frame.valid

    def indices(self) -> np.ndarray:
        """Return the frame number of each parsed frame, shape [N], dtype int64."""
        return np.array([frame.index for frame in self.frames], dtype=np.int64)

    def poses(self) -> np.ndarray:
        """Return all frame poses stacked, shape [N, 4, 4], dtype float64."""
        if not self.frames:
            return np.zeros((0, 4, 4), dtype=np.float64)
        return np.stack([frame.pose for frame in self.frames]).astype(np.float64)

    def validity(self) -> np.ndarray:
        """
        Return validity flags for every declared frame, shape [frame_count].

        Frame numbers without a parsed frame are False. The array is longer
        than frame_count only if the header has frame numbers past it.
        """
        last = self.frames[-1].index + 1 if self.frames else 0
        flags = np.zeros(max(self.frame_count, last), dtype=bool)
        for frame in self.frames:
            flags[frame.index] = frame.valid
        return flags


@dataclass(frozen=True)
class LoadResult:
    """
    Outcome of loading a sequence file.

    Attributes:
        library: The loaded FrameLibrary.
        partial: True if parsing stopped at a truncated transform record.
        frames_parsed: Number of frames parsed successfully.
    """
    library: FrameLibrary
    partial: bool = False
    frames_parsed: int = 0

    @property
    def status(self) -> str:
        return "PARTIAL" if self.partial else "OK"


@dataclass(frozen=True, order=True)
class DistanceScore:
    """
    Distance of the pointer to one frame.

    Ordering is ascending by distance, ties broken by frame index.
    """
    distance: float
    frame_index: int


@dataclass(frozen=True)
class MatchResult:
    """
    Ranking of all frames against one pointer pose.

    Attributes:
        ranking: DistanceScore per parsed frame, closest first. Invalid frames
                 carry the maximum float distance and come last.
        frame_indices: Frame number of each entry of the score streams,
                       shape [N], in library order.
        slice_distances: Pointer-tip to image-plane distance per frame, in
                         library order, shape [N].
        orientation_distances: Orientation distance per frame, in library
                               order, shape [N]. Reported alongside the
                               ranking but not used to order it.
    """
    ranking: List[DistanceScore] = field(default_factory=list)
    frame_indices: np.ndarray = field(
        default_factory=lambda: np.zeros(0, dtype=np.int64)
    )
    slice_distances: np.ndarray = field(
        default_factory=lambda: np.zeros(0, dtype=np.float64)
    )
    orientation_distances: np.ndarray = field(
        default_factory=lambda: np.zeros(0, dtype=np.float64)
    )

    def __post_init__(self) -> None:
        """Validate that the score streams line up."""
        for name, stream in (
            ("slice_distances", self.slice_distances),
            ("orientation_distances", self.orientation_distances),
        ):
            if stream.shape != self.frame_indices.shape:
                raise ValueError(
                    f"{name} {stream.shape} and frame_indices "
                    f"{self.frame_indices.shape} must have the same shape"
                )
        if len(self.ranking) != self.frame_indices.shape[0]:
            raise ValueError(
                f"ranking has {len(self.ranking)} entries but "
                f"{self.frame_indices.shape[0]} distances were computed"
            )

    @property
    def best(self) -> Optional[DistanceScore]:
        """Return the closest frame, or None for an empty library."""
        return self.ranking[0] if self.ranking else None

    def ranked_indices(self) -> List[int]:
        return [score.frame_index for score in self.ranking]

    def scores_of(self, frame_index: int) -> Tuple[float, float]:
        """
        Return (slice distance, orientation distance) of one frame.

        Raises:
            KeyError: If the frame was not scored.
        """
        positions = np.flatnonzero(self.frame_indices == frame_index)
        if positions.size == 0:
            raise KeyError(f"frame {frame_index} has no score")
        pos = positions[0]
        return float(self.slice_distances[pos]), float(self.orientation_distances[pos])


@dataclass(frozen=True)
class FrameImage:
    """
    Pixels of one frame, ready for an external renderer.

    Attributes:
        frame_index: Index of the frame the pixels belong to.
        pixels: Read-only uint8 view, shape [height, width].
        image_to_world: 4x4 transform from image pixel space to tracker space,
                        computed as frame pose @ image-to-probe calibration.
        status: "OK" or "INVALID".
    """
    frame_index: int
    pixels: np.ndarray
    image_to_world: np.ndarray
    status: str

    def __post_init__(self) -> None:
        if self.pixels.ndim != 2:
            raise ValueError(
                f"pixels must be 2D [H, W], got shape {self.pixels.shape}"
            )
        if self.pixels.dtype != np.uint8:
            raise TypeError(f"pixels must be uint8, got {self.pixels.dtype}")
        if self.image_to_world.shape != (4, 4):
            raise ValueError(
                f"image_to_world must have shape (4, 4), "
                f"got {self.image_to_world.shape}"
            )


class PoseUpdateKind(Enum):
    """Kinds of pose-update events the session reacts to."""
    POINTER_MOVED = "pointer_moved"
    POINTER_DETACHED = "pointer_detached"


@dataclass(frozen=True)
class PoseUpdate:
    """
    A pose-update event delivered by the tracking subsystem.

    Attributes:
        kind: Which kind of update this is.
        pose: New 4x4 pointer pose. Required for POINTER_MOVED, must be None
              for POINTER_DETACHED.
    """
    kind: PoseUpdateKind
    pose: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        if self.kind is PoseUpdateKind.POINTER_MOVED:
            if self.pose is None:
                raise ValueError("POINTER_MOVED update requires a pose")
            if np.asarray(self.pose).shape != (4, 4):
                raise ValueError(
                    f"pose must have shape (4, 4), got {np.asarray(self.pose).shape}"
                )
        elif self.pose is not None:
            raise ValueError(f"{self.kind.name} update must not carry a pose")

    @classmethod
    def moved(cls, pose: np.ndarray) -> "PoseUpdate":
        return cls(PoseUpdateKind.POINTER_MOVED, np.asarray(pose, dtype=np.float64))

    @classmethod
    def detached(cls) -> "PoseUpdate":
        return cls(PoseUpdateKind.POINTER_DETACHED)
