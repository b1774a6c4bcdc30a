"""Tests for the frame navigator."""

import pytest


class TestStepping:
    """next_frame / previous_frame / go_to_frame."""

    def test_next_frame_wraps_to_start(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(5, [True] * 5)
        visited = [navigator.next_frame() for _ in range(5)]

        assert visited == [1, 2, 3, 4, 0]
        assert navigator.current_frame == 0

    def test_previous_frame_from_start_goes_to_end(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(5, [True] * 5)
        assert navigator.previous_frame() == 4

    @pytest.mark.parametrize("target, expected", [(3, 3), (7, 0), (-1, 6), (0, 0)])
    def test_go_to_frame_wraps(self, target, expected):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(7, [True] * 7)
        assert navigator.go_to_frame(target) == expected

    def test_clamp_frame(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(3, [True] * 3)
        navigator.current_frame = 3
        navigator.clamp_frame()
        assert navigator.current_frame == 0

        navigator.current_frame = -1
        navigator.clamp_frame()
        assert navigator.current_frame == 2


class TestValidityScan:
    """Skip to the next/previous valid or invalid frame."""

    def test_next_invalid_frame(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(4, [True, False, True, False])
        assert navigator.next_invalid_frame() == 1
        assert navigator.next_invalid_frame() == 3
        assert navigator.next_invalid_frame() == 1

    def test_next_valid_frame_wraps(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(4, [True, False, True, False])
        navigator.go_to_frame(2)
        assert navigator.next_valid_frame() == 0

    def test_previous_valid_frame(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(5, [False, True, False, False, True])
        assert navigator.previous_valid_frame() == 4
        assert navigator.previous_valid_frame() == 1
        assert navigator.previous_valid_frame() == 4

    def test_previous_invalid_frame(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(4, [True, False, True, True])
        navigator.go_to_frame(3)
        assert navigator.previous_invalid_frame() == 1
        assert navigator.previous_invalid_frame() == 1

    def test_no_valid_frame_stays_put(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(4, [False] * 4)
        navigator.go_to_frame(2)
        assert navigator.next_valid_frame() == 2
        assert navigator.previous_valid_frame() == 2

    def test_no_invalid_frame_stays_put(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(3, [True] * 3)
        navigator.go_to_frame(1)
        assert navigator.next_invalid_frame() == 1
        assert navigator.previous_invalid_frame() == 1

    def test_only_current_frame_matches(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(3, [False, True, False])
        navigator.go_to_frame(1)
        assert navigator.next_valid_frame() == 1

    def test_frames_without_validity_are_invalid(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(4, [True, True])
        assert navigator.next_invalid_frame() == 2
        assert not navigator.is_valid(3)
        assert not navigator.is_valid(10)


class TestEmptyNavigator:
    """A navigator over an empty library does nothing."""

    def test_all_operations_are_noops(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(0, [])
        calls = []
        navigator.add_listener(calls.append)

        for operation in (
            navigator.next_frame,
            navigator.previous_frame,
            navigator.next_valid_frame,
            navigator.previous_valid_frame,
            navigator.next_invalid_frame,
            navigator.previous_invalid_frame,
        ):
            assert operation() == 0
        assert navigator.go_to_frame(5) == 0
        assert navigator.current_frame == 0
        assert calls == []

    def test_negative_count_raises(self):
        from usnav.navigation import FrameNavigator

        with pytest.raises(ValueError):
            FrameNavigator(-1, [])


class TestListeners:
    """Frame-change notifications."""

    def test_listener_receives_each_move(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(4, [True, False, True, False])
        calls = []
        navigator.add_listener(calls.append)

        navigator.next_frame()
        navigator.next_invalid_frame()
        navigator.go_to_frame(-1)

        assert calls == [1, 3, 3]

    def test_remove_listener(self):
        from usnav.navigation import FrameNavigator

        navigator = FrameNavigator(4, [True] * 4)
        calls = []
        navigator.add_listener(calls.append)
        navigator.add_listener(calls.append)
        navigator.next_frame()
        navigator.remove_listener(calls.append)
        navigator.next_frame()

        assert calls == [1]
