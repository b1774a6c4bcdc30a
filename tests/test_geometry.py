"""Tests for the geometry routines in usnav.geometry."""

import numpy as np
import pytest
import torch


def rotation_z(angle):
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def rotation_x(angle):
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def make_pose(rotation=None, translation=(0.0, 0.0, 0.0)):
    pose = np.eye(4)
    if rotation is not None:
        pose[:3, :3] = rotation
    pose[:3, 3] = translation
    return pose


def random_pose(rng):
    q, _ = np.linalg.qr(rng.normal(size=(3, 3)))
    return make_pose(q, rng.uniform(-100.0, 100.0, size=3))


class TestProjection:
    """project_point_onto_plane."""

    def test_projects_onto_xy_plane(self):
        from usnav.geometry import project_point_onto_plane

        projected = project_point_onto_plane([1.0, 2.0, 5.0], [0.0, 0.0, 1.0], 0.0)
        torch.testing.assert_close(
            projected, torch.tensor([1.0, 2.0, 0.0], dtype=torch.float64)
        )

    def test_normal_is_normalized(self):
        from usnav.geometry import project_point_onto_plane

        projected = project_point_onto_plane([1.0, 2.0, 5.0], [0.0, 0.0, 10.0], -3.0)
        torch.testing.assert_close(
            projected, torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64)
        )


class TestPointToSliceDistance:
    """point_to_slice_distance."""

    def test_zero_for_same_pose(self):
        from usnav.geometry import point_to_slice_distance

        rng = np.random.default_rng(0)
        for _ in range(10):
            pose = random_pose(rng)
            assert point_to_slice_distance(pose, pose).item() == pytest.approx(0.0, abs=1e-9)

    def test_out_of_plane_distance(self):
        from usnav.geometry import point_to_slice_distance

        # Image plane z = 10 (normal along z), pointer tip at (3, -4, 17)
        slice_pose = make_pose(translation=(0.0, 0.0, 10.0))
        pointer = make_pose(translation=(3.0, -4.0, 17.0))
        assert point_to_slice_distance(pointer, slice_pose).item() == pytest.approx(7.0)

    def test_in_plane_offset_does_not_count(self):
        from usnav.geometry import point_to_slice_distance

        slice_pose = make_pose(translation=(5.0, 5.0, 0.0))
        pointer = make_pose(translation=(-50.0, 80.0, 0.0))
        assert point_to_slice_distance(pointer, slice_pose).item() == pytest.approx(0.0)

    def test_uses_third_column_as_normal(self):
        from usnav.geometry import point_to_slice_distance

        # Rotating 90 deg about x maps the normal (col 2) to -y
        slice_pose = make_pose(rotation_x(np.pi / 2))
        pointer = make_pose(translation=(1.0, 4.0, 9.0))
        assert point_to_slice_distance(pointer, slice_pose).item() == pytest.approx(4.0)

    def test_scaled_normal(self):
        from usnav.geometry import point_to_slice_distance

        slice_pose = make_pose(0.1 * np.eye(3), (0.0, 0.0, 2.0))
        pointer = make_pose(translation=(0.0, 0.0, 5.0))
        assert point_to_slice_distance(pointer, slice_pose).item() == pytest.approx(3.0)

    def test_not_symmetric(self):
        from usnav.geometry import point_to_slice_distance

        a = make_pose(translation=(0.0, 0.0, 0.0))
        b = make_pose(rotation_x(np.pi / 2), (0.0, 0.0, 5.0))
        assert point_to_slice_distance(a, b).item() == pytest.approx(0.0)
        assert point_to_slice_distance(b, a).item() == pytest.approx(5.0)

    def test_batched(self):
        from usnav.geometry import point_to_slice_distance

        slices = np.stack([make_pose(translation=(0.0, 0.0, z)) for z in (0.0, 1.0, 4.0)])
        pointer = make_pose(translation=(0.0, 0.0, 2.0))
        distances = point_to_slice_distance(pointer, slices)

        assert distances.shape == (3,)
        torch.testing.assert_close(
            distances, torch.tensor([2.0, 1.0, 2.0], dtype=torch.float64)
        )

    def test_wrong_shape_raises(self):
        from usnav.geometry import point_to_slice_distance

        with pytest.raises(ValueError, match="pointer_pose"):
            point_to_slice_distance(np.eye(3), np.eye(4))


class TestOrientationDistance:
    """orientation_distance."""

    def test_symmetric(self):
        from usnav.geometry import orientation_distance

        rng = np.random.default_rng(1)
        for _ in range(10):
            a, b = random_pose(rng), random_pose(rng)
            torch.testing.assert_close(
                orientation_distance(a, b), orientation_distance(b, a)
            )

    def test_compares_both_poses(self):
        from usnav.geometry import orientation_distance

        a = make_pose()
        b = make_pose(rotation_z(np.pi / 2))
        # Columns: e_x vs e_y, e_y vs -e_x, e_z vs e_z
        assert orientation_distance(a, b).item() == pytest.approx(4.0)

    def test_ignores_translation_and_scale(self):
        from usnav.geometry import orientation_distance

        a = make_pose(rotation_z(0.3), (10.0, 0.0, 0.0))
        b = make_pose(0.1 * rotation_z(0.3), (-40.0, 2.0, 7.0))
        assert orientation_distance(a, b).item() == pytest.approx(0.0, abs=1e-12)

    def test_small_rotation(self):
        from usnav.geometry import orientation_distance

        angle = 0.1
        a = make_pose()
        b = make_pose(rotation_z(angle))
        # ||R - I||_F^2 = 4 (1 - cos angle) for a rotation about one axis
        assert orientation_distance(a, b).item() == pytest.approx(4 * (1 - np.cos(angle)))


class TestPoseDistance:
    """pose_distance."""

    def test_zero_for_same_pose(self):
        from usnav.geometry import pose_distance

        pose = random_pose(np.random.default_rng(2))
        assert pose_distance(pose, pose).item() == 0.0

    def test_symmetric(self):
        from usnav.geometry import pose_distance

        rng = np.random.default_rng(3)
        for _ in range(10):
            a, b = random_pose(rng), random_pose(rng)
            torch.testing.assert_close(pose_distance(a, b), pose_distance(b, a))

    def test_translation_only(self):
        from usnav.geometry import pose_distance

        a = make_pose(translation=(1.0, 2.0, 3.0))
        b = make_pose(translation=(1.0, 0.0, 0.0))
        assert pose_distance(a, b).item() == pytest.approx(13.0)
