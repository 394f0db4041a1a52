"""Decoder for Warcraft III replay (.w3g) files."""

from .errors import (
    InflateError,
    ReplayFormatError,
    ReplayParsingError,
    TruncatedReplayError,
)
from .models import Replay
from .replay import decode, decode_stream, load_replay

__version__ = "0.1.0"

__all__ = [
    "InflateError",
    "Replay",
    "ReplayFormatError",
    "ReplayParsingError",
    "TruncatedReplayError",
    "decode",
    "decode_stream",
    "load_replay",
]
