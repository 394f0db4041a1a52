"""Tagged values found on the wire.

The format is reverse-engineered, so unseen values are expected. Each enum
carries an UNKNOWN member outside every wire range and a parse() that falls
back to it instead of raising."""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Optional

logger = logging.getLogger(__name__)


class WireEnum(IntEnum):
    @classmethod
    def parse(cls, raw: int):
        try:
            return cls(raw)
        except ValueError:
            logger.debug(f"Unrecognized {cls.__name__} value {raw:#x}")
            return cls.UNKNOWN  # type: ignore[attr-defined]

    @property
    def is_unknown(self) -> bool:
        return self.name == "UNKNOWN"


def raw_if_unknown(value: WireEnum, raw: int) -> Optional[int]:
    """The wire value behind an UNKNOWN tag, None for recognized values."""
    return raw if value.is_unknown else None


class SlotColor(WireEnum):
    UNKNOWN = -1
    RED = 1
    BLUE = 2
    TEAL = 3
    PURPLE = 4
    YELLOW = 5
    ORANGE = 6
    GREEN = 7
    PINK = 8
    GRAY = 9
    LIGHTBLUE = 10
    DARKGREEN = 11
    BROWN = 12
    MAROON = 13
    NAVY = 14
    TURQUOISE = 15
    VIOLET = 16
    WHEAT = 17
    PEACH = 18
    MINT = 19
    LAVENDER = 20
    COAL = 21
    SNOW = 22
    EMERALD = 23
    PEANUT = 24
    OBSERVER = 25

    @classmethod
    def from_wire(cls, color_byte: int) -> SlotColor:
        """Colors are stored 0-based."""
        return cls.parse(color_byte + 1)


class SlotRace(WireEnum):
    UNKNOWN = -1
    HUMAN = 0x01
    ORC = 0x02
    NIGHTELF = 0x04
    UNDEAD = 0x08
    RANDOM = 20
    FIXED = 40


class ComputerAIStrength(WireEnum):
    UNKNOWN = -1
    EASY = 0
    NORMAL = 1
    INSANE = 2


class SlotStatus(WireEnum):
    UNKNOWN = -1
    EMPTY = 0
    CLOSED = 1
    OCCUPIED = 2


class LeaveReason(WireEnum):
    UNKNOWN = -1
    CONNECTION_CLOSED_BY_REMOTE_GAME = 0x01
    CONNECTION_CLOSED_BY_LOCAL_GAME = 0x0C


class SelectionMode(WireEnum):
    UNKNOWN = -1
    ADD = 0x01
    REMOVE = 0x02


class ActionType(WireEnum):
    UNKNOWN = -1

    PAUSE = 0x01
    RESUME = 0x02

    SAVE_GAME = 0x06
    SAVE_GAME_DONE = 0x07

    ABILITY_BASIC = 0x10
    ABILITY_WITH_TARGET_LOCATION = 0x11
    ABILITY_WITH_TARGET_LOCATION_AND_OBJECT = 0x12
    ITEM_TRANSFER = 0x13

    CHANGE_SELECTION = 0x16
    GROUP_ASSIGN = 0x17
    GROUP_SELECT = 0x18

    MINIMAP_SIGNAL = 0x68
