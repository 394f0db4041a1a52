"""Decoding of the individual player actions inside a time slice."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .cursor import ByteCursor
from .diagnostics import Diagnostics, NullDiagnostics
from .enums import ActionType, SelectionMode, raw_if_unknown
from .models import Action, ActionData, ChatMessage, MapLocation, ObjectIDs

logger = logging.getLogger(__name__)

CHAT_DEDUP_WINDOW = 500
"""Chat commands closer than this to an identical chat record are dropped."""

ORDER_ID_MARKER = 0x000D

SKIP_LENGTHS: Dict[int, int] = {
    0x01: 0,  # pause
    0x02: 0,  # resume
    0x03: 1,  # set game speed
    0x04: 0,
    0x05: 0,
    0x07: 4,  # save game done
    0x14: 43,
    0x18: 2,  # select group
    0x19: 12,
    0x1A: 0,
    0x1B: 9,
    0x1C: 9,
    0x1D: 8,
    0x1E: 5,
    0x20: 0,
    0x21: 8,
    0x22: 0,
    0x23: 0,
    0x24: 0,
    0x25: 0,
    0x26: 0,
    0x27: 5,
    0x29: 0,
    0x2A: 0,
    0x2B: 0,
    0x2C: 0,
    0x2D: 5,
    0x2E: 4,
    0x2F: 0,
    0x30: 0,
    0x31: 0,
    0x32: 0,
    0x50: 5,
    0x51: 9,
    0x61: 0,
    0x66: 0,
    0x67: 0,
    0x69: 16,
    0x6A: 16,
    0x75: 1,
    0x7A: 20,
    0x7B: 16,
}
"""Opcodes whose payload we skip over: opcode -> payload length."""


def read_item_id(cursor: ByteCursor) -> str:
    """Read a 4-byte item id, stored reversed.

    Ids whose upper word is 0x000D are numeric orders rather than four-letter
    codes; only their low word is kept as the id and the marker is skipped."""
    if cursor.peek_word(2) == ORDER_ID_MARKER:
        item_id = cursor.read_string(2)
        cursor.skip(2)
    else:
        item_id = cursor.read_string(4)
    return item_id[::-1]


def read_location(cursor: ByteCursor) -> MapLocation:
    return MapLocation(x=cursor.read_float(), y=cursor.read_float())


def read_objects(cursor: ByteCursor, count: int) -> List[ObjectIDs]:
    return [
        ObjectIDs(id1=cursor.read_dword(), id2=cursor.read_dword())
        for _ in range(count)
    ]


def read_ability(cursor: ByteCursor, opcode: int) -> ActionData:
    """Abilities 0x10-0x13 share a prefix; each later opcode adds more fields."""
    fields = dict(ability_flags=cursor.read_word())
    fields["item_id"] = read_item_id(cursor)
    fields["unknownA"] = cursor.read_dword()
    fields["unknownB"] = cursor.read_dword()
    if opcode >= 0x11:
        fields["location"] = read_location(cursor)
    if opcode >= 0x12:
        fields["target_obj_id_1"] = cursor.read_dword()
        fields["target_obj_id_2"] = cursor.read_dword()
    if opcode >= 0x13:
        fields["item_obj_id_1"] = cursor.read_dword()
        fields["item_obj_id_2"] = cursor.read_dword()
    return ActionData(**fields)


def add_chat_command(
    chat: List[ChatMessage],
    player_id: int,
    message: str,
    timestamp: int,
    window: int = CHAT_DEDUP_WINDOW,
) -> bool:
    """Append an in-band chat command unless a chat record already covers it.

    Some replays store chat both as 0x20 records and as 0x60 actions; others
    only as actions."""
    for existing in reversed(chat):
        if (
            existing.sender_player_id == player_id
            and existing.message == message
            and abs(existing.timestamp - timestamp) < window
        ):
            return False
    chat.append(
        ChatMessage(sender_player_id=player_id, message=message, timestamp=timestamp)
    )
    return True


def decode_action_block(
    cursor: ByteCursor,
    player_id: int,
    block_length: int,
    timestamp: int,
    chat: List[ChatMessage],
    diagnostics: Optional[Diagnostics] = None,
    chat_window: int = CHAT_DEDUP_WINDOW,
) -> List[Action]:
    """Decode one player's action block of block_length bytes.

    Returns the actions with a known type; chat commands are appended to chat.
    An unknown opcode ends the block, skipping whatever is left of it."""
    diagnostics = diagnostics or NullDiagnostics()
    actions: List[Action] = []
    block_start = cursor.position
    while cursor.position - block_start < block_length:
        opcode = cursor.read_byte()
        diagnostics.action(opcode)
        action_type = ActionType.parse(opcode)
        data: Optional[ActionData] = None

        if opcode == 0x06:
            data = ActionData(savegame_name=cursor.read_cstring())
        elif 0x10 <= opcode <= 0x13:
            data = read_ability(cursor, opcode)
        elif opcode == 0x16:
            mode_byte = cursor.read_byte()
            mode = SelectionMode.parse(mode_byte)
            count = cursor.read_word()
            data = ActionData(
                sel_mode=mode,
                sel_mode_raw=raw_if_unknown(mode, mode_byte),
                objects=read_objects(cursor, count),
            )
        elif opcode == 0x17:
            group = cursor.read_byte()
            count = cursor.read_word()
            data = ActionData(group_id=group, objects=read_objects(cursor, count))
        elif opcode == 0x60:
            cursor.skip(8)
            command = cursor.read_cstring()
            logger.debug(
                f"Chat command (time {timestamp}) (player {player_id}): {command!r}"
            )
            add_chat_command(chat, player_id, command, timestamp, chat_window)
        elif opcode == 0x62:
            data = ActionData(
                unknownA=cursor.read_dword(),
                unknownB=cursor.read_dword(),
                unknownC=cursor.read_dword(),
            )
        elif opcode == 0x68:
            data = ActionData(location=read_location(cursor))
        elif opcode in SKIP_LENGTHS:
            cursor.skip(SKIP_LENGTHS[opcode])
        else:
            offset = cursor.position - 1
            left = block_length - (cursor.position - block_start)
            logger.warning(
                f"Unknown action id {opcode:#04x} at {offset:#x}. "
                f"Read {cursor.position - block_start}/{block_length} bytes of block, "
                f"skipping {left}"
            )
            if left < 0:
                left = 0
            diagnostics.unknown_opcode(opcode, offset, left)
            cursor.skip(left)
            break

        if action_type != ActionType.UNKNOWN:
            actions.append(
                Action(
                    player_id=player_id,
                    timestamp=timestamp,
                    action_type=action_type,
                    data=data,
                )
            )
    return actions
