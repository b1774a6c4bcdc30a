"""
Distance measures between a tracked pointer and recorded image planes.

All functions operate on 4x4 homogeneous poses with shape [..., 4, 4] and
broadcast over leading batch dimensions, so a single pointer pose can be
compared against a whole library of frame poses [N, 4, 4] in one call.
Inputs may be numpy arrays or tensors; computation is done in float64.

Pose layout:
    column 0-2: rotation block (column 2 is the image-plane normal for a
                slice pose)
    column 3:   translation (image origin for a slice pose, tip position for
                the pointer)
"""

from typing import Union

import numpy as np
import torch

PoseLike = Union[torch.Tensor, np.ndarray]


def _as_tensor(value: PoseLike) -> torch.Tensor:
    return torch.as_tensor(value, dtype=torch.float64)


def _as_poses(pose: PoseLike, name: str) -> torch.Tensor:
    pose = _as_tensor(pose)
    if pose.shape[-2:] != (4, 4):
        raise ValueError(
            f"{name} must have shape [..., 4, 4], got shape ending with {tuple(pose.shape[-2:])}"
        )
    return pose


def _normalize(vectors: torch.Tensor, dim: int = -1) -> torch.Tensor:
    # Zero-length vectors are left unchanged
    norms = torch.linalg.norm(vectors, dim=dim, keepdim=True)
    return vectors / torch.where(norms > 0, norms, torch.ones_like(norms))


def project_point_onto_plane(
    point: PoseLike,
    plane_normal: PoseLike,
    offset: PoseLike,
) -> torch.Tensor:
    """
    Project points onto planes given in Hessian normal form.

    The plane is {x : dot(x, n) + offset = 0} with n the normalized
    plane_normal.

    Args:
        point: Points, shape [..., 3].
        plane_normal: Plane normals, shape [..., 3]. Need not be unit length.
        offset: Plane offsets, shape [...].

    Returns:
        Projected points, shape [..., 3].
    """
    point = _as_tensor(point)
    normal = _normalize(_as_tensor(plane_normal))
    offset = _as_tensor(offset)
    signed_distance = (point * normal).sum(dim=-1) + offset
    return point - signed_distance[..., None] * normal


def point_to_slice_distance(
    pointer_pose: PoseLike,
    slice_pose: PoseLike,
) -> torch.Tensor:
    """
    Out-of-plane distance from the pointer tip to an image plane.

    The plane passes through the slice origin (translation column) with the
    third rotation column as its normal. The tip is the translation column
    of the pointer pose.

    Args:
        pointer_pose: Pointer pose(s), shape [..., 4, 4].
        slice_pose: Frame pose(s), shape [..., 4, 4]. Broadcastable with
                    pointer_pose.

    Returns:
        Euclidean distances, shape of the broadcast batch dimensions.
    """
    pointer_pose = _as_poses(pointer_pose, "pointer_pose")
    slice_pose = _as_poses(slice_pose, "slice_pose")

    normal = _normalize(slice_pose[..., 0:3, 2])
    origin = slice_pose[..., 0:3, 3]
    tip = pointer_pose[..., 0:3, 3]

    offset = -(origin * normal).sum(dim=-1)
    tip, normal = torch.broadcast_tensors(tip, normal)
    projected = project_point_onto_plane(tip, normal, offset)
    return torch.linalg.norm(tip - projected, dim=-1)


def orientation_distance(
    pose_a: PoseLike,
    pose_b: PoseLike,
) -> torch.Tensor:
    """
    Squared Frobenius distance between column-normalized rotation blocks.

    Normalizing the columns removes any scale carried by the poses, so only
    the orientation is compared. The measure is symmetric.

    Args:
        pose_a: Pose(s), shape [..., 4, 4].
        pose_b: Pose(s), shape [..., 4, 4]. Broadcastable with pose_a.

    Returns:
        trace(D^T D) with D the difference of the normalized blocks, shape
        of the broadcast batch dimensions.
    """
    pose_a = _as_poses(pose_a, "pose_a")
    pose_b = _as_poses(pose_b, "pose_b")

    rotation_a = _normalize(pose_a[..., 0:3, 0:3], dim=-2)
    rotation_b = _normalize(pose_b[..., 0:3, 0:3], dim=-2)
    diff = rotation_a - rotation_b
    return (diff * diff).sum(dim=(-2, -1))


def pose_distance(
    pose_a: PoseLike,
    pose_b: PoseLike,
) -> torch.Tensor:
    """
    Squared Frobenius distance between two full 4x4 poses.

    Args:
        pose_a: Pose(s), shape [..., 4, 4].
        pose_b: Pose(s), shape [..., 4, 4]. Broadcastable with pose_a.

    Returns:
        trace((A - B)^T (A - B)), shape of the broadcast batch dimensions.
    """
    pose_a = _as_poses(pose_a, "pose_a")
    pose_b = _as_poses(pose_b, "pose_b")
    diff = pose_a - pose_b
    return (diff * diff).sum(dim=(-2, -1))
