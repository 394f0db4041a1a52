"""Top-level records of the replay data that follows the lobby header."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .actions import CHAT_DEDUP_WINDOW, decode_action_block
from .cursor import ByteCursor
from .diagnostics import Diagnostics, NullDiagnostics
from .enums import LeaveReason, raw_if_unknown
from .header import RosterEntry
from .models import Action, ChatMessage

logger = logging.getLogger(__name__)

END_OF_STREAM = 0x00
LEAVE_GAME = 0x17
TIME_SLICE = (0x1E, 0x1F)
CHAT_MESSAGE = 0x20

SKIPPED_RECORDS: Dict[int, int] = {
    0x1A: 4,
    0x1B: 4,
    0x1C: 4,
    0x22: 5,
    0x23: 10,
    0x2F: 8,
}
"""Fixed-length records we don't interpret: tag -> payload length."""


@dataclass()
class StreamResult:
    chat: List[ChatMessage] = field(default_factory=list)
    actions: List[Action] = field(default_factory=list)
    last_leaver_id: int = 0
    timestamp: int = 0


def to_signed_byte(value: int) -> int:
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


class RecordParser:
    """Walks the record stream, updating the roster and collecting chat/actions."""

    def __init__(
        self,
        cursor: ByteCursor,
        roster: Dict[int, RosterEntry],
        diagnostics: Optional[Diagnostics] = None,
        chat_window: int = CHAT_DEDUP_WINDOW,
    ):
        self.cursor = cursor
        self.roster = roster
        self.diagnostics = diagnostics or NullDiagnostics()
        self.chat_window = chat_window
        self.result = StreamResult()

    def run(self) -> StreamResult:
        cursor = self.cursor
        logger.debug(f"Replay data starts at {cursor.position:#x}")
        # Well-formed streams end at a 0x00 tag, usually the zero padding of the last block.
        while True:
            tag = cursor.read_byte()
            if tag == END_OF_STREAM:
                logger.info(f"Exiting at null. Position: {cursor.position:#x}")
                break
            elif tag == LEAVE_GAME:
                self.leave_game()
            elif tag in TIME_SLICE:
                self.time_slice()
            elif tag == CHAT_MESSAGE:
                self.chat_message()
            elif tag in SKIPPED_RECORDS:
                cursor.skip(SKIPPED_RECORDS[tag])
            else:
                logger.info(
                    f"Unknown record id {tag:#04x} at {cursor.position - 1:#x}, stopping"
                )
                break
            self.diagnostics.record(tag)
        return self.result

    def leave_game(self):
        cursor = self.cursor
        raw_reason = cursor.read_dword()
        reason = LeaveReason.parse(raw_reason)
        player_id = cursor.read_byte()
        result = cursor.read_dword()
        cursor.skip(4)
        logger.debug(f"Player {player_id} left: {reason.name} (result {result:#x})")
        if (player := self.roster.get(player_id)) is not None:
            player.leave_reason = reason
            player.leave_reason_raw = raw_if_unknown(reason, raw_reason)
            player.result_byte = result & 0xFF
        self.result.last_leaver_id = player_id

    def time_slice(self):
        cursor = self.cursor
        start = cursor.position
        length = cursor.read_word()
        self.result.timestamp += cursor.read_word()
        # The length includes the time increment we just read.
        remaining = length - 2
        expected = remaining
        data_start = cursor.position

        if remaining > 3:
            while True:
                player_id = cursor.read_byte()
                block_length = cursor.read_word()
                remaining -= 3
                if (player := self.roster.get(player_id)) is not None:
                    player.left_at = self.result.timestamp
                block_start = cursor.position
                self.result.actions += decode_action_block(
                    cursor,
                    player_id,
                    block_length,
                    self.result.timestamp,
                    self.result.chat,
                    self.diagnostics,
                    self.chat_window,
                )
                remaining -= cursor.position - block_start
                if remaining < 1:
                    break

        consumed = cursor.position - data_start
        if consumed != expected:
            logger.warning(
                f"Time slice at {start:#x}: consumed {consumed} bytes, expected {expected}"
            )
            self.diagnostics.slice_mismatch(start, consumed, expected)

    def chat_message(self):
        cursor = self.cursor
        player_id = cursor.read_byte()
        cursor.skip(2)
        flag = cursor.read_byte()
        recipient = to_signed_byte(cursor.read_dword() - 2)
        message = cursor.read_cstring()
        self.result.chat.append(
            ChatMessage(
                sender_player_id=player_id,
                recipient_slot_number=recipient,
                flag=flag,
                message=message,
                timestamp=self.result.timestamp,
            )
        )


def parse_records(
    cursor: ByteCursor,
    roster: Dict[int, RosterEntry],
    diagnostics: Optional[Diagnostics] = None,
    chat_window: int = CHAT_DEDUP_WINDOW,
) -> StreamResult:
    return RecordParser(cursor, roster, diagnostics, chat_window).run()
