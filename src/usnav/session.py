"""
Navigation session: the API a host application talks to.

A NavigationSession owns the currently loaded FrameLibrary together with the
matcher and navigator built for it. Loading a new sequence builds all three
first and swaps them in together, so a failed load leaves the previous
sequence fully usable.
"""

import logging
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

import numpy as np
import torch

from usnav.calibration import ImageToProbeCalibration
from usnav.config import get_config_schema, get_default_config
from usnav.constants import STATUS_INVALID, STATUS_OK
from usnav.data.loader import load_sequence
from usnav.data.pixels import find_data_offset, read_frame_pixels
from usnav.matching import FrameMatcher
from usnav.navigation import FrameListener, FrameNavigator
from usnav.types import (
    FrameImage,
    FrameLibrary,
    LoadResult,
    MatchResult,
    PoseUpdate,
    PoseUpdateKind,
)

logger = logging.getLogger(__name__)


class NavigationSession:
    """
    Tracks a pointer against one recorded ultrasound sequence at a time.

    Attributes:
        config: Validated configuration dictionary.
        calibration: Image-to-probe calibration used to place frames in
                     tracker space.
        last_match: Result of the most recent pointer match, or None.

    Example:
        >>> session = NavigationSession()
        >>> session.load_sequence("recording.mha")
        >>> session.next_valid_frame()
        >>> best = session.match_pointer_pose(stylus_pose).best
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        calibration: Optional[ImageToProbeCalibration] = None,
        device: torch.device = torch.device("cpu"),
    ) -> None:
        """
        Initialize an empty session.

        Args:
            config: Session configuration. Validated against
                    get_config_schema(); defaults are used if None.
            calibration: Image-to-probe calibration. If None, it is loaded
                         from config["calibration_path"] when set, otherwise
                         the calibration of the recording setup is used.
            device: PyTorch device for frame matching.

        Raises:
            ValueError: If config is invalid.
            FileNotFoundError: If config["calibration_path"] does not exist.
        """
        self.config = get_config_schema().validate(
            config if config is not None else get_default_config()
        )
        if calibration is None:
            if self.config["calibration_path"]:
                calibration = ImageToProbeCalibration.from_csv(self.config["calibration_path"])
            else:
                calibration = ImageToProbeCalibration.default()
        self.calibration = calibration
        self.device = device
        self.last_match: Optional[MatchResult] = None

        self._listeners: List[FrameListener] = []
        self._load_result: Optional[LoadResult] = None
        self._library = FrameLibrary.empty()
        self._matcher = FrameMatcher(self._library, device)
        self._navigator = self._make_navigator(self._library)
        self._data_offset: Optional[int] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _make_navigator(self, library: FrameLibrary) -> FrameNavigator:
        navigator = FrameNavigator(library.frame_count, library.validity())
        navigator.add_listener(self._notify)
        return navigator

    def load_sequence(self, path: Union[str, Path]) -> LoadResult:
        """
        Load a sequence metafile and make it the active sequence.

        Loading the path that is already active does nothing and returns the
        previous result. The current frame is reset to 0.

        Args:
            path: Path to the sequence metafile.

        Returns:
            LoadResult; ``partial`` is set when a truncated record stopped
            parsing early.

        Raises:
            SequenceFileNotFoundError: If the file does not exist.
            SequenceReadError: If the file cannot be read.
            DimensionsNotFoundError: If the header has no valid DimSize.

        Note:
            When an exception is raised, the previously loaded sequence
            stays active.
        """
        path = Path(path)
        if self._load_result is not None and str(path) == self._library.source_path:
            return self._load_result

        result = load_sequence(
            path,
            transform_names=self.config["transform_names"],
            image_suffix=self.config["image_suffix"],
            missing_status_is_valid=self.config["missing_status_is_valid"],
        )
        matcher = FrameMatcher(result.library, self.device)
        navigator = self._make_navigator(result.library)

        self._library, self._matcher, self._navigator = result.library, matcher, navigator
        self._load_result = result
        self._data_offset = None
        self.last_match = None

        if result.library.frame_count > 0:
            self._notify(self._navigator.current_frame)
        return result

    @property
    def library(self) -> FrameLibrary:
        return self._library

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_current_frame(self) -> int:
        return self._navigator.current_frame

    def get_frame_count(self) -> int:
        return self._library.frame_count

    def get_image_dimensions(self) -> Tuple[int, int]:
        """Return (width, height) of the frames in pixels."""
        return self._library.image_width, self._library.image_height

    def get_current_frame_status(self) -> str:
        """Return "OK" if the current frame has valid tracking, else "INVALID"."""
        if self._library.is_valid(self._navigator.current_frame):
            return STATUS_OK
        return STATUS_INVALID

    def get_available_transform_tags(self) -> FrozenSet[str]:
        return self._library.transform_tags

    def get_current_frame_image(self) -> Optional[FrameImage]:
        """
        Read the pixels of the current frame and its image-to-tracker transform.

        Returns:
            FrameImage with a read-only pixel view and
            frame_pose @ image-to-probe calibration, or None if the loaded
            sequence declares no frames. A frame without a parsed pose is
            placed with the identity pose.

        Raises:
            SequenceReadError: If the pixel payload is missing or truncated.
        """
        library = self._library
        if library.frame_count == 0:
            return None

        index = self._navigator.current_frame
        if self._data_offset is None:
            self._data_offset = find_data_offset(library.source_path)
        pixels = read_frame_pixels(
            library.source_path,
            index,
            library.image_width,
            library.image_height,
            data_offset=self._data_offset,
        )

        frame = library.frame_at(index)
        if frame is not None:
            frame_pose = frame.pose
        else:
            frame_pose = np.eye(4, dtype=np.float64)

        return FrameImage(
            frame_index=index,
            pixels=pixels,
            image_to_world=self.calibration.image_to_world(frame_pose),
            status=self.get_current_frame_status(),
        )

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def match_pointer_pose(self, pose: np.ndarray) -> MatchResult:
        """
        Rank all frames against a pointer pose and remember the result.

        Args:
            pose: 4x4 pointer pose in tracker coordinates.

        Returns:
            MatchResult, closest frame first. Empty if nothing is loaded.
        """
        self.last_match = self._matcher.match(pose)
        return self.last_match

    def handle_pose_update(self, update: PoseUpdate) -> Optional[MatchResult]:
        """
        React to a pose update from the tracking subsystem.

        Args:
            update: The pose-update event.

        Returns:
            The new MatchResult for POINTER_MOVED, None for POINTER_DETACHED.

        Raises:
            ValueError: If the update kind is not handled.
        """
        if update.kind is PoseUpdateKind.POINTER_MOVED:
            return self.match_pointer_pose(update.pose)
        if update.kind is PoseUpdateKind.POINTER_DETACHED:
            self.last_match = None
            return None
        raise ValueError(f"Unhandled pose update kind: {update.kind}")

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def add_frame_listener(self, listener: FrameListener) -> None:
        """Register a callback receiving the frame index after each change."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_frame_listener(self, listener: FrameListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, frame: int) -> None:
        for listener in list(self._listeners):
            listener(frame)

    def go_to_frame(self, frame: int) -> int:
        return self._navigator.go_to_frame(frame)

    def next_frame(self) -> int:
        return self._navigator.next_frame()

    def previous_frame(self) -> int:
        return self._navigator.previous_frame()

    def next_valid_frame(self) -> int:
        return self._navigator.next_valid_frame()

    def previous_valid_frame(self) -> int:
        return self._navigator.previous_valid_frame()

    def next_invalid_frame(self) -> int:
        return self._navigator.next_invalid_frame()

    def previous_invalid_frame(self) -> int:
        return self._navigator.previous_invalid_frame()
