"""
Rigid transformation utilities for pose conversions.

This module provides functions to convert between:
- 4x4 homogeneous pose matrices (float64)
- Flat 12-value serializations (row-major 3x4, float32) as stored in
  sequence metafiles
- Column vectors and the 3x3 rotation block of a pose
- 6DOF parameters (rx, ry, rz, tx, ty, tz) where r is Euler angles and t is
  translation

The Euler angle convention is ZYX (rotate around Z first, then Y, then X).
"""

import logging
from typing import Sequence, Union

import numpy as np
import torch

from usnav.constants import EULER_CONVENTION, FLAT_TRANSFORM_SIZE

logger = logging.getLogger(__name__)


def _check_pose(pose: np.ndarray, name: str = "pose") -> np.ndarray:
    pose = np.asarray(pose)
    if pose.shape != (4, 4):
        raise ValueError(f"{name} must have shape (4, 4), got {pose.shape}")
    return pose


def to_flat_transform(pose: np.ndarray) -> np.ndarray:
    """
    Serialize a pose to its flat 12-value form.

    Args:
        pose: 4x4 homogeneous transformation matrix.

    Returns:
        Array of shape [12], dtype float32, holding rows 0-2 of the pose in
        row-major order. The bottom row is not serialized.

    Raises:
        ValueError: If pose does not have shape (4, 4).

    Note:
        This is the only place where values are narrowed to single precision.
    """
    pose = _check_pose(pose)
    return pose[0:3, :].reshape(FLAT_TRANSFORM_SIZE).astype(np.float32)


def from_flat_transform(values: Sequence[float]) -> np.ndarray:
    """
    Build a pose from a flat 12-value serialization.

    Args:
        values: At least 12 numbers, row-major rows 0-2 of a 4x4 matrix.
                Values past the twelfth (e.g. a serialized bottom row) are
                ignored.

    Returns:
        4x4 float64 pose with bottom row [0, 0, 0, 1]. If fewer than 12
        values are supplied, the identity is returned.
    """
    pose = np.eye(4, dtype=np.float64)
    flat = np.asarray(values, dtype=np.float64).ravel()
    if flat.size < FLAT_TRANSFORM_SIZE:
        logger.debug(
            "Flat transform has %d values, expected %d; using identity",
            flat.size, FLAT_TRANSFORM_SIZE,
        )
        return pose
    pose[0:3, :] = flat[:FLAT_TRANSFORM_SIZE].reshape(3, 4)
    return pose


def extract_column(pose: np.ndarray, col_index: int) -> np.ndarray:
    """
    Extract the first three entries of a pose column.

    Column 3 is the translation; column 2 is the normal of the image plane
    for a slice pose.

    Args:
        pose: 4x4 homogeneous transformation matrix.
        col_index: Column index in [0, 3].

    Returns:
        Array of shape [3] (a copy).

    Raises:
        ValueError: If pose is not 4x4 or col_index is out of range.
    """
    pose = _check_pose(pose)
    if not 0 <= col_index <= 3:
        raise ValueError(f"col_index must be in [0, 3], got {col_index}")
    return pose[0:3, col_index].copy()


def extract_rotation_block(pose: np.ndarray) -> np.ndarray:
    """Return a copy of the top-left 3x3 block of a 4x4 pose."""
    pose = _check_pose(pose)
    return pose[0:3, 0:3].copy()


def compose_transforms(
    transform_a_to_b: np.ndarray,
    transform_b_to_c: np.ndarray,
) -> np.ndarray:
    """
    Compose two transformations to get transform from A to C.

    Given:
    - T_{B←A}: transforms points from A to B
    - T_{C←B}: transforms points from B to C

    Returns:
    - T_{C←A} = T_{C←B} @ T_{B←A}: transforms points from A to C

    Args:
        transform_a_to_b: Transformation matrices from A to B, shape [..., 4, 4].
        transform_b_to_c: Transformation matrices from B to C, shape [..., 4, 4].
                          Must be broadcastable with transform_a_to_b.

    Returns:
        Composed transformation matrices from A to C, shape [..., 4, 4].

    Raises:
        ValueError: If transforms do not have shape [..., 4, 4].
    """
    transform_a_to_b = np.asarray(transform_a_to_b)
    transform_b_to_c = np.asarray(transform_b_to_c)
    if transform_a_to_b.shape[-2:] != (4, 4):
        raise ValueError(
            f"transform_a_to_b must have shape [..., 4, 4], "
            f"got shape ending with {transform_a_to_b.shape[-2:]}"
        )
    if transform_b_to_c.shape[-2:] != (4, 4):
        raise ValueError(
            f"transform_b_to_c must have shape [..., 4, 4], "
            f"got shape ending with {transform_b_to_c.shape[-2:]}"
        )
    return np.matmul(transform_b_to_c, transform_a_to_b)


def invert_transform(transform: np.ndarray) -> np.ndarray:
    """
    Compute the inverse of a homogeneous transformation.

    Args:
        transform: Transformation matrices with shape [..., 4, 4].

    Returns:
        Inverse transformation matrices with shape [..., 4, 4].

    Raises:
        ValueError: If transform does not have shape [..., 4, 4].
    """
    transform = np.asarray(transform)
    if transform.shape[-2:] != (4, 4):
        raise ValueError(
            f"transform must have shape [..., 4, 4], "
            f"got shape ending with {transform.shape[-2:]}"
        )
    return np.linalg.inv(transform)


def params_to_matrix(params: Union[torch.Tensor, Sequence[float]]) -> torch.Tensor:
    """
    Convert 6DOF parameters to 4x4 transformation matrices.

    Requires pytorch3d (``pip install usnav[params]``).

    Args:
        params: 6DOF parameters with shape [..., 6] where the last dimension
                contains (rx, ry, rz, tx, ty, tz). Euler angles in radians.
                Supports any number of batch dimensions.

    Returns:
        4x4 transformation matrices with shape [..., 4, 4].

    Raises:
        ValueError: If params does not have 6 elements in the last dimension.

    Example:
        >>> params = torch.zeros(10, 6, dtype=torch.float64)
        >>> matrices = params_to_matrix(params)
        >>> matrices.shape
        torch.Size([10, 4, 4])
    """
    import pytorch3d.transforms

    if not isinstance(params, torch.Tensor):
        params = torch.tensor(params, dtype=torch.float64)
    if not params.is_floating_point():
        params = params.to(torch.float64)
    if params.shape[-1] != 6:
        raise ValueError(
            f"params must have 6 elements in last dimension, got {params.shape[-1]}"
        )

    euler_angles = params[..., 0:3]
    translation = params[..., 3:6]

    rotation_matrix = pytorch3d.transforms.euler_angles_to_matrix(
        euler_angles, EULER_CONVENTION
    )

    transform_3x4 = torch.cat(
        [rotation_matrix, translation[..., None]],
        dim=-1
    )

    batch_shape = params.shape[:-1]
    last_row = torch.zeros(
        (*batch_shape, 1, 4),
        dtype=params.dtype,
        device=params.device
    )
    last_row[..., 0, 3] = 1.0

    return torch.cat([transform_3x4, last_row], dim=-2)


def matrix_to_params(matrix: Union[torch.Tensor, np.ndarray]) -> torch.Tensor:
    """
    Convert 4x4 transformation matrices to 6DOF parameters.

    Requires pytorch3d. Assumes the rotation block is orthogonal; poses that
    carry a scale (such as the image-to-probe calibration) produce undefined
    angles.

    Args:
        matrix: 4x4 transformation matrices with shape [..., 4, 4].

    Returns:
        6DOF parameters with shape [..., 6] containing (rx, ry, rz, tx, ty, tz).

    Raises:
        ValueError: If matrix does not have shape [..., 4, 4].
    """
    import pytorch3d.transforms

    matrix = torch.as_tensor(matrix)
    if matrix.shape[-2:] != (4, 4):
        raise ValueError(
            f"matrix must have shape [..., 4, 4], got shape ending with {matrix.shape[-2:]}"
        )

    euler_angles = pytorch3d.transforms.matrix_to_euler_angles(
        matrix[..., 0:3, 0:3], EULER_CONVENTION
    )
    return torch.cat([euler_angles, matrix[..., 0:3, 3]], dim=-1)
