"""
Exceptions raised while loading a tracked ultrasound sequence.

Loading is the only step allowed to fail. Matching and navigation operate on
an already-loaded FrameLibrary and never raise for an empty one.
"""


class SequenceLoadError(Exception):
    """Base class for all errors raised while loading a sequence file."""


class SequenceFileNotFoundError(SequenceLoadError, FileNotFoundError):
    """The sequence file does not exist."""


class SequenceReadError(SequenceLoadError, IOError):
    """The sequence file exists but could not be read (or is too short)."""


class DimensionsNotFoundError(SequenceLoadError, ValueError):
    """
    The header has no usable ``DimSize`` record.

    Raised when the key is absent before the end of the header, or when it
    is not followed by exactly three integers.
    """
