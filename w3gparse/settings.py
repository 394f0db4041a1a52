"""Game settings, stored as an obfuscated bit-packed blob after the game name.

Every 8th byte of the stored blob (starting with the first) is a mask. For
each of the following 7 bytes, a clear bit at that byte's position within the
group means the stored value is one more than the real one. The blob ends at
the first zero byte, which is how the encoding avoids storing zeros at all."""

from __future__ import annotations

import logging
from typing import Sequence, Tuple

from .cursor import ByteCursor
from .errors import ReplayFormatError, TruncatedReplayError
from .models import GameSettings

logger = logging.getLogger(__name__)

MAP_NAME_OFFSET = 13


def decode_settings_blob(encoded: bytes) -> bytes:
    decoded = bytearray()
    mask = 0
    for i, byte in enumerate(encoded):
        if byte == 0:
            break
        if i % 8 == 0:
            mask = byte
        elif mask & (1 << (i % 8)) == 0:
            decoded.append(byte - 1)
        else:
            decoded.append(byte)
    return bytes(decoded)


def encode_settings_blob(decoded: bytes) -> bytes:
    """Inverse of decode_settings_blob, without the trailing NUL."""
    encoded = bytearray()
    for start in range(0, len(decoded), 7):
        group = decoded[start : start + 7]
        mask = 1
        stored = bytearray()
        for j, byte in enumerate(group, start=1):
            if byte == 0xFF:
                mask |= 1 << j
                stored.append(byte)
            else:
                stored.append(byte + 1)
        encoded.append(mask)
        encoded += stored
    return bytes(encoded)


def is_bit_set(byte: int, i: int) -> bool:
    return (byte & (1 << i)) != 0


def get_bits_value(byte: int, bits: Sequence[int]) -> int:
    """Compose an integer whose bit i is bit bits[i] of byte."""
    return sum(1 << i for i, bit in enumerate(bits) if is_bit_set(byte, bit))


def parse_game_settings(
    decoded: bytes, offset: int = 0
) -> Tuple[GameSettings, str, str]:
    """Unpack a decoded settings blob into (settings, map name, creator name).

    offset is where the blob started in the replay stream, for error reporting."""
    if len(decoded) < 4:
        raise ReplayFormatError(
            offset, f"Game settings blob too short ({len(decoded)} bytes)"
        )
    settings = GameSettings(
        game_speed=get_bits_value(decoded[0], [0, 1]),
        vis_hide_terrain=is_bit_set(decoded[1], 0),
        vis_map_explored=is_bit_set(decoded[1], 1),
        vis_always_visible=is_bit_set(decoded[1], 2),
        vis_default=is_bit_set(decoded[1], 3),
        obs_mode=get_bits_value(decoded[1], [4, 5]),
        teams_together=is_bit_set(decoded[1], 6),
        fixed_teams=get_bits_value(decoded[2], [1, 2]),
        shared_unit_control=is_bit_set(decoded[3], 0),
        random_hero=is_bit_set(decoded[3], 1),
        random_races=is_bit_set(decoded[3], 2),
        obs_referees=is_bit_set(decoded[3], 6),
    )
    sub = ByteCursor(decoded[MAP_NAME_OFFSET:])
    try:
        map_name = sub.read_cstring()
        creator_name = sub.read_cstring()
    except TruncatedReplayError as e:
        raise ReplayFormatError(
            offset, "Game settings blob ends inside the map or creator name"
        ) from e
    return settings, map_name, creator_name
