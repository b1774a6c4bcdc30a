"""Tests for raw pixel extraction from the sequence payload."""

import numpy as np
import pytest


def identity_poses(n):
    return [np.eye(4) for _ in range(n)]


class TestPixels:
    """find_data_offset and read_frame_pixels."""

    def test_data_offset_is_end_of_header(self, make_sequence):
        from usnav.data import find_data_offset

        path = make_sequence(identity_poses(3), [True] * 3)
        raw = path.read_bytes()
        marker = b"ElementDataFile = LOCAL\n"

        assert find_data_offset(path) == raw.index(marker) + len(marker)

    def test_reads_each_frame(self, make_sequence):
        from usnav.data import read_frame_pixels

        path = make_sequence(identity_poses(5), [True] * 5, width=6, height=2)
        for i in range(5):
            pixels = read_frame_pixels(path, i, width=6, height=2)
            assert pixels.shape == (2, 6)
            assert pixels.dtype == np.uint8
            assert np.all(pixels == i)

    def test_pixels_are_read_only(self, make_sequence):
        from usnav.data import read_frame_pixels

        path = make_sequence(identity_poses(1), [True])
        pixels = read_frame_pixels(path, 0, width=4, height=3)
        with pytest.raises(ValueError):
            pixels[0, 0] = 1

    def test_explicit_offset_matches_lookup(self, make_sequence):
        from usnav.data import find_data_offset, read_frame_pixels

        path = make_sequence(identity_poses(3), [True] * 3)
        offset = find_data_offset(path)
        np.testing.assert_array_equal(
            read_frame_pixels(path, 2, 4, 3, data_offset=offset),
            read_frame_pixels(path, 2, 4, 3),
        )

    def test_frame_past_payload_raises(self, make_sequence):
        from usnav.errors import SequenceReadError
        from usnav.data import read_frame_pixels

        path = make_sequence(identity_poses(2), [True] * 2)
        with pytest.raises(SequenceReadError, match="truncated"):
            read_frame_pixels(path, 2, width=4, height=3)

    def test_negative_index_raises(self, make_sequence):
        from usnav.data import read_frame_pixels

        path = make_sequence(identity_poses(2), [True] * 2)
        with pytest.raises(IndexError):
            read_frame_pixels(path, -1, width=4, height=3)

    def test_missing_marker_raises(self, write_header):
        from usnav.errors import SequenceReadError
        from usnav.data import find_data_offset

        path = write_header(["DimSize = 4 3 1"])
        with pytest.raises(SequenceReadError):
            find_data_offset(path)
