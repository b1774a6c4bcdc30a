"""Geometry routines comparing pointer poses with image planes."""

from usnav.geometry.distances import (
    project_point_onto_plane,
    point_to_slice_distance,
    orientation_distance,
    pose_distance,
)

__all__ = [
    "project_point_onto_plane",
    "point_to_slice_distance",
    "orientation_distance",
    "pose_distance",
]
