"""
Frame matching: rank recorded frames against a live pointer pose.

Every parsed frame gets two scores:
- the out-of-plane distance from the pointer tip to the frame's image plane,
  which orders the ranking;
- the orientation distance between the pointer and the frame, reported
  alongside as an auxiliary stream.

Invalid frames get the maximum float distance in both streams so they
always rank last.
"""

import logging
from typing import Optional, Union

import numpy as np
import torch

from usnav.constants import INVALID_DISTANCE
from usnav.geometry.distances import orientation_distance, point_to_slice_distance
from usnav.types import DistanceScore, FrameLibrary, MatchResult

logger = logging.getLogger(__name__)


class FrameMatcher:
    """
    Ranks the frames of one FrameLibrary against pointer poses.

    The library poses are stacked once into a [N, 4, 4] float64 tensor so
    each match is a single batched computation. The library itself is never
    modified; build a new matcher when a new library is loaded.

    Attributes:
        library: The FrameLibrary being matched against.
        device: Device holding the cached pose tensor.
    """

    def __init__(
        self,
        library: FrameLibrary,
        device: torch.device = torch.device("cpu"),
    ) -> None:
        """
        Initialize the matcher.

        Args:
            library: Library to rank.
            device: PyTorch device for the batched distance computation.

        Raises:
            TypeError: If library is not a FrameLibrary.
        """
        if not isinstance(library, FrameLibrary):
            raise TypeError(
                f"library must be FrameLibrary, got {type(library).__name__}"
            )
        self.library = library
        self.device = device
        self._poses = torch.as_tensor(library.poses(), dtype=torch.float64, device=device)
        self._valid = torch.as_tensor(
            [frame.valid for frame in library.frames], dtype=torch.bool, device=device
        )
        self._indices = library.indices()

    def __len__(self) -> int:
        return self._poses.shape[0]

    def match(self, pointer_pose: Union[np.ndarray, torch.Tensor]) -> MatchResult:
        """
        Rank all parsed frames by distance of the pointer tip to their plane.

        Args:
            pointer_pose: 4x4 pointer pose in tracker coordinates.

        Returns:
            MatchResult with the ranking (closest first, ties by frame index)
            and both per-frame score streams in library order, aligned with
            MatchResult.frame_indices.

        Raises:
            ValueError: If pointer_pose is not 4x4.
        """
        pointer = torch.as_tensor(pointer_pose, dtype=torch.float64, device=self.device)
        if pointer.shape != (4, 4):
            raise ValueError(
                f"pointer_pose must have shape (4, 4), got {tuple(pointer.shape)}"
            )

        if len(self) == 0:
            return MatchResult()

        invalid_fill = torch.full_like(self._valid, INVALID_DISTANCE, dtype=torch.float64)
        slice_distances = torch.where(
            self._valid, point_to_slice_distance(pointer, self._poses), invalid_fill
        )
        orientation_distances = torch.where(
            self._valid, orientation_distance(pointer, self._poses), invalid_fill
        )

        slice_np = slice_distances.cpu().numpy()
        orientation_np = orientation_distances.cpu().numpy()
        ranking = sorted(
            DistanceScore(float(distance), int(index))
            for index, distance in zip(self._indices, slice_np)
        )

        logger.debug(
            "Best match: frame %d at %.3f mm", ranking[0].frame_index, ranking[0].distance
        )
        return MatchResult(
            ranking=ranking,
            frame_indices=self._indices.copy(),
            slice_distances=slice_np,
            orientation_distances=orientation_np,
        )


def match_frames(
    pointer_pose: Union[np.ndarray, torch.Tensor],
    library: FrameLibrary,
    device: Optional[torch.device] = None,
) -> MatchResult:
    """
    Rank the frames of a library against a pointer pose.

    Convenience wrapper around FrameMatcher for one-off queries.

    Args:
        pointer_pose: 4x4 pointer pose.
        library: Library to rank.
        device: Optional device for the computation (CPU by default).

    Returns:
        MatchResult for this pose. Empty if the library has no frames.
    """
    matcher = FrameMatcher(library, device if device is not None else torch.device("cpu"))
    return matcher.match(pointer_pose)
