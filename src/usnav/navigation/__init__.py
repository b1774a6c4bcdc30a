"""Frame navigation over a loaded sequence."""

from usnav.navigation.navigator import FrameListener, FrameNavigator

__all__ = [
    "FrameListener",
    "FrameNavigator",
]
