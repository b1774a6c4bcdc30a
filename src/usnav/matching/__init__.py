"""Frame matching against live pointer poses."""

from usnav.matching.matcher import FrameMatcher, match_frames

__all__ = [
    "FrameMatcher",
    "match_frames",
]
