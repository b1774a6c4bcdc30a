"""Transform utilities for pose conversions."""

from usnav.transforms.rigid import (
    to_flat_transform,
    from_flat_transform,
    extract_column,
    extract_rotation_block,
    compose_transforms,
    invert_transform,
    params_to_matrix,
    matrix_to_params,
)

__all__ = [
    "to_flat_transform",
    "from_flat_transform",
    "extract_column",
    "extract_rotation_block",
    "compose_transforms",
    "invert_transform",
    "params_to_matrix",
    "matrix_to_params",
]
