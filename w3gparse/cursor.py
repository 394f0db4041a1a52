"""Sequential reader over an in-memory replay buffer."""

import struct

from .errors import TruncatedReplayError


class ByteCursor:
    """Read position over an immutable buffer.

    All integers are little endian. Every read that would run past the end of
    the buffer raises TruncatedReplayError and leaves the position untouched."""

    def __init__(self, data: bytes, position: int = 0):
        self.data = bytes(data)
        self.position = position

    def __len__(self) -> int:
        return len(self.data)

    @property
    def remaining(self) -> int:
        return len(self.data) - self.position

    def at_end(self) -> bool:
        return self.position >= len(self.data)

    def _take(self, n: int, operation: str) -> bytes:
        if n < 0 or n > self.remaining:
            raise TruncatedReplayError(self.position, operation)
        start = self.position
        self.position += n
        return self.data[start : self.position]

    def read(self, n: int) -> bytes:
        return self._take(n, f"read({n})")

    def read_byte(self) -> int:
        return self._take(1, "read_byte")[0]

    def read_word(self) -> int:
        return parse_word(self._take(2, "read_word"))

    def read_dword(self) -> int:
        return parse_dword(self._take(4, "read_dword"))

    def read_float(self) -> float:
        # Stored reversed relative to big-endian, i.e. plain little endian.
        (value,) = struct.unpack(">f", self._take(4, "read_float")[::-1])
        return value

    def read_string(self, n: int) -> str:
        return self._take(n, f"read_string({n})").decode("utf-8", errors="replace")

    def read_until_nul(self) -> bytes:
        """Read raw bytes up to the next NUL, consuming but not returning it."""
        end = self.data.find(b"\x00", self.position)
        if end < 0:
            raise TruncatedReplayError(self.position, "read_until_nul")
        raw = self.data[self.position : end]
        self.position = end + 1
        return raw

    def read_cstring(self) -> str:
        return self.read_until_nul().decode("utf-8", errors="replace")

    def peek_word(self, offset: int = 0) -> int:
        start = self.position + offset
        if start < 0 or start + 2 > len(self.data):
            raise TruncatedReplayError(start, "peek_word")
        return parse_word(self.data[start : start + 2])

    def skip(self, n: int) -> None:
        """Relative seek; n may be negative."""
        target = self.position + n
        if target < 0 or target > len(self.data):
            raise TruncatedReplayError(self.position, f"skip({n})")
        self.position = target


def parse_word(bs: bytes) -> int:
    return sum(256**j * bs[j] for j in range(2))


def parse_dword(bs: bytes) -> int:
    return sum(256**j * bs[j] for j in range(4))
