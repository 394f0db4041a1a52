import struct
import zlib
from typing import List, NamedTuple, Sequence, Tuple

import pytest

from w3gparse.container import header_length_for
from w3gparse.settings import encode_settings_blob

MAP_NAME = "Maps/FrozenThrone/(2)EchoIsles.w3x"
CREATOR = "Creator#1234"


def word(v: int) -> bytes:
    return struct.pack("<H", v)


def dword(v: int) -> bytes:
    return struct.pack("<I", v)


def cstr(s: str) -> bytes:
    return s.encode("utf-8") + b"\x00"


def settings_blob(
    speed: int = 2,
    flags: Tuple[int, int, int] = (0, 0, 0),
    map_name: str = MAP_NAME,
    creator: str = CREATOR,
) -> bytes:
    decoded = bytes([speed, *flags]) + bytes(9) + cstr(map_name) + cstr(creator)
    return encode_settings_blob(decoded) + b"\x00"


def slot(
    player_id: int = 1,
    status: int = 2,
    computer: int = 0,
    team: int = 0,
    color: int = 0,
    race: int = 0x01,
    ai: int = 1,
    handicap: int = 100,
) -> bytes:
    return bytes([player_id, 100, status, computer, team, color, race, ai, handicap])


def build_header(
    player_id: int = 1,
    name: str = "Alice#1111",
    host: bool = True,
    game_name: str = "Local Game (Alice)",
    players: Sequence[Tuple[int, str]] = ((2, "Bob#2222"),),
    metadata: Sequence[Tuple[int, bytes]] = (),
    slots: Sequence[bytes] = (slot(1), slot(2, team=1, color=1)),
    start_tag: int = 0x19,
    settings: bytes = b"",
) -> bytes:
    out = bytes([0x00 if host else 0x01, player_id]) + bytes(4)
    out += cstr(name) + b"\x02" + b"\xaa\xbb"
    out += cstr(game_name) + b"\x00"
    out += settings or settings_blob()
    out += dword(len(slots)) + b"\x01\x00" + bytes(2) + bytes(4)
    for pid, pname in players:
        out += b"\x16" + bytes([pid]) + cstr(pname) + b"\x01" + b"\x00"
    for subtype, payload in metadata:
        out += b"\x39" + bytes([subtype]) + dword(len(payload)) + payload
    out += bytes([start_tag])
    out += word(1 + 9 * len(slots)) + bytes([len(slots)]) + b"".join(slots)
    out += dword(0xDEADBEEF) + b"\x00" + bytes([len(slots)])
    return out


def leave(reason: int, player_id: int, result: int = 0x09) -> bytes:
    return b"\x17" + dword(reason) + bytes([player_id]) + dword(result) + bytes(4)


def block(player_id: int, *actions: bytes) -> bytes:
    payload = b"".join(actions)
    return bytes([player_id]) + word(len(payload)) + payload


def time_slice(increment: int, *blocks: bytes, tag: int = 0x1F) -> bytes:
    body = b"".join(blocks)
    return bytes([tag]) + word(len(body) + 2) + word(increment) + body


def chat_record(player_id: int, message: str, flag: int = 0x20, recipient: int = 0) -> bytes:
    body = bytes([flag]) + dword(recipient) + cstr(message)
    return b"\x20" + bytes([player_id]) + word(len(body)) + body


def ability(
    opcode: int = 0x10,
    flags: int = 0x0040,
    item: bytes = b"oofh",
    extra: bytes = b"",
) -> bytes:
    return bytes([opcode]) + word(flags) + item + dword(0xFFFFFFFF) + dword(0xFFFFFFFF) + extra


def chat_command(message: str) -> bytes:
    return b"\x60" + bytes(8) + cstr(message)


def build_replay(raw: bytes, version: int = 1, chunk_size: int = 0) -> bytes:
    chunks = [raw]
    if chunk_size:
        chunks = [raw[i : i + chunk_size] for i in range(0, len(raw), chunk_size)]
    header = bytearray(48)
    header[0:28] = b"Warcraft III recorded game\x1a\x00"
    header[0x24] = version
    header[44:48] = dword(len(chunks))
    out = bytes(header) + bytes(header_length_for(version) - 48)
    for chunk in chunks:
        compressed = zlib.compress(chunk)
        out += dword(len(compressed)) + dword(len(chunk)) + word(0) + word(0)
        out += compressed
    return out


class ReplayCase(NamedTuple):
    raw: bytes
    data: bytes


@pytest.fixture
def minimal_replay() -> ReplayCase:
    """One player, one slot, one ability action and a leave record."""
    raw = (
        build_header(players=(), slots=(slot(1),))
        + time_slice(100, block(1, ability()))
        + leave(0x01, 1)
        + b"\x00"
    )
    return ReplayCase(raw=raw, data=build_replay(raw))


@pytest.fixture
def full_replay() -> ReplayCase:
    actions: List[bytes] = [
        ability(0x11, extra=struct.pack("<ff", 1.5, -2.0)),
        b"\x16\x01" + word(2) + dword(1) + dword(2) + dword(3) + dword(4),
        b"\x68" + struct.pack("<ff", 10.0, 20.0),
    ]
    raw = (
        build_header()
        + chat_record(1, "glhf")
        + time_slice(250, block(1, *actions), block(2, b"\x01"))
        + time_slice(250, block(2, chat_command("gg")))
        + b"\x1a" + bytes(4)
        + leave(0x0C, 2, result=0x08)
        + leave(0x01, 1)
        + b"\x00"
    )
    return ReplayCase(raw=raw, data=build_replay(raw, chunk_size=32))
