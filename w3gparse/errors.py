"""Exceptions raised while decoding a replay."""

from typing import Optional


class ReplayParsingError(Exception):
    pass


class TruncatedReplayError(ReplayParsingError):
    """A read or seek ran past the end of the buffer."""

    def __init__(self, offset: int, operation: str, message: Optional[str] = None):
        self.offset = offset
        self.operation = operation
        super().__init__(
            message or f"Replay truncated: {operation} failed at offset {offset:#x}"
        )


class ReplayFormatError(ReplayParsingError):
    """The stream does not have the structure we expect, e.g. a missing sentinel."""

    def __init__(self, offset: int, message: str, tag: Optional[int] = None):
        self.offset = offset
        self.tag = tag
        super().__init__(f"{message} (offset {offset:#x})")


class InflateError(ReplayParsingError):
    """A compressed block could not be inflated."""
