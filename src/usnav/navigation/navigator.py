"""
Frame navigation over a loaded sequence.

The navigator is a cursor over [0, frame_count). Stepping past either end
wraps around, and the skip operations scan the library once for the next
frame with a given validity. Listeners registered with add_listener() are
called with the new frame index after every navigation operation.
"""

import logging
from typing import Callable, List, Sequence

import numpy as np

logger = logging.getLogger(__name__)

FrameListener = Callable[[int], None]


class FrameNavigator:
    """
    Cursor over the frames of a sequence.

    With an empty library (frame_count == 0) every operation is a no-op,
    the current frame stays 0 and listeners are not called.

    Attributes:
        frame_count: Number of frames that can be navigated to.
        current_frame: Index of the current frame, always in [0, frame_count)
                       for a non-empty library.
    """

    def __init__(self, frame_count: int, validity: Sequence[bool]) -> None:
        """
        Initialize the navigator at frame 0.

        Args:
            frame_count: Number of frames in the sequence.
            validity: Validity flag per frame. Frames past the end of this
                      sequence count as invalid.

        Raises:
            ValueError: If frame_count is negative.
        """
        if frame_count < 0:
            raise ValueError(f"frame_count must be >= 0, got {frame_count}")

        self.frame_count = frame_count
        self.current_frame = 0
        self._validity = np.zeros(frame_count, dtype=bool)
        flags = np.asarray(validity, dtype=bool)[:frame_count]
        self._validity[:flags.shape[0]] = flags
        self._listeners: List[FrameListener] = []

    def add_listener(self, listener: FrameListener) -> None:
        """Register a callback receiving the new frame index after each move."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: FrameListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def is_valid(self, index: int) -> bool:
        if 0 <= index < self.frame_count:
            return bool(self._validity[index])
        return False

    def clamp_frame(self) -> None:
        """
        Wrap the current frame back into [0, frame_count).

        Indices past the end go to the first frame, negative indices to the
        last one.
        """
        if self.frame_count == 0:
            self.current_frame = 0
            return
        if self.current_frame >= self.frame_count:
            self.current_frame = 0
        if self.current_frame < 0:
            self.current_frame = self.frame_count - 1

    def _move_to(self, frame: int) -> int:
        if self.frame_count == 0:
            return self.current_frame
        self.current_frame = frame
        self.clamp_frame()
        logger.debug("Current frame: %d/%d", self.current_frame, self.frame_count)
        for listener in list(self._listeners):
            listener(self.current_frame)
        return self.current_frame

    def go_to_frame(self, frame: int) -> int:
        """Move to a frame, wrapping out-of-range indices. Returns the new index."""
        return self._move_to(frame)

    def next_frame(self) -> int:
        return self._move_to(self.current_frame + 1)

    def previous_frame(self) -> int:
        return self._move_to(self.current_frame - 1)

    def _scan(self, step: int, want_valid: bool) -> int:
        # LOOP INVARIANT: frame is the i-th candidate after (step=1) or before
        # (step=-1) the current frame, wrapped into [0, frame_count). If no
        # candidate matches, the last one examined is the current frame.
        frame = self.current_frame
        for i in range(self.frame_count):
            frame = (self.current_frame + step * (i + 1)) % self.frame_count
            if self._validity[frame] == want_valid:
                break
        return self._move_to(frame)

    def next_valid_frame(self) -> int:
        """Move to the next frame with an OK transform, wrapping once."""
        return self._scan(1, True)

    def previous_valid_frame(self) -> int:
        """Move to the previous frame with an OK transform, wrapping once."""
        return self._scan(-1, True)

    def next_invalid_frame(self) -> int:
        """Move to the next frame with an INVALID transform, wrapping once."""
        return self._scan(1, False)

    def previous_invalid_frame(self) -> int:
        """Move to the previous frame with an INVALID transform, wrapping once."""
        return self._scan(-1, False)
