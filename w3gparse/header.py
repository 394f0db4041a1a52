"""Lobby header at the start of the decompressed stream: host record, game
name and settings, the player list and the slot table."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .cursor import ByteCursor
from .enums import (
    ComputerAIStrength,
    LeaveReason,
    SlotColor,
    SlotRace,
    SlotStatus,
    raw_if_unknown,
)
from .errors import ReplayFormatError
from .models import GameSettings, ReplayPlayer, Slot
from .settings import decode_settings_blob, parse_game_settings

logger = logging.getLogger(__name__)

PLAYER_RECORD_TAGS = (0x00, 0x16)
PLAYER_METADATA_TAG = 0x39
GAME_START_TAG = 0x19


@dataclass()
class RosterEntry:
    """A player's session record; updated in place while the action stream is read."""

    battle_tag: str
    leave_reason: LeaveReason = LeaveReason.UNKNOWN
    leave_reason_raw: Optional[int] = None
    result_byte: int = 0
    left_at: int = 0

    def freeze(self) -> ReplayPlayer:
        return ReplayPlayer(
            battle_tag=self.battle_tag,
            leave_reason=self.leave_reason,
            leave_reason_raw=self.leave_reason_raw,
            result_byte=self.result_byte,
            left_at=self.left_at,
        )


@dataclass()
class Header:
    is_host: bool
    player_id: int
    player_name: str
    game_name: str
    settings: GameSettings
    map_name: str
    creator_name: str
    player_slot_count: int = 0
    game_type: int = 0
    is_private_custom_game: int = 0
    roster: Dict[int, RosterEntry] = field(default_factory=dict)
    slots: List[Slot] = field(default_factory=list)
    random_seed: int = 0
    selection_mode: int = 0
    start_spot_count: int = 0


def read_player_record(cursor: ByteCursor):
    """Read (player id, name) and skip the record's trailing extra data."""
    player_id = cursor.read_byte()
    name = cursor.read_cstring()
    extra = cursor.read_byte()
    cursor.skip(extra)
    return player_id, name


def read_slot(cursor: ByteCursor) -> Slot:
    player_id = cursor.read_byte()
    download = cursor.read_byte()
    status_byte = cursor.read_byte()
    status = SlotStatus.parse(status_byte)
    is_computer = cursor.read_byte() == 1
    team = cursor.read_byte()
    color_byte = cursor.read_byte()
    race_byte = cursor.read_byte()
    ai_byte = cursor.read_byte()
    ai_strength = ComputerAIStrength.parse(ai_byte)
    handicap = cursor.read_byte()
    color = SlotColor.from_wire(color_byte)
    race = SlotRace.parse(race_byte)
    slot = Slot(
        player_id=player_id,
        map_download_percent=download,
        status=status,
        is_computer=is_computer,
        team_index=team,
        color=color,
        race=race,
        ai_strength=ai_strength,
        handicap_percent=handicap,
        status_raw=raw_if_unknown(status, status_byte),
        color_raw=raw_if_unknown(color, color_byte),
        race_raw=raw_if_unknown(race, race_byte),
        ai_strength_raw=raw_if_unknown(ai_strength, ai_byte),
    )
    logger.debug(
        f"Slot record: pid={player_id} status={status.name} computer={is_computer} "
        f"team={team} color={slot.color.name} ({color_byte}) race={slot.race.name} ({race_byte})"
    )
    return slot


def parse_header(cursor: ByteCursor) -> Header:
    """Read everything up to the start of the action stream."""
    is_host = cursor.read_byte() == 0x00
    player_id = cursor.read_byte()
    cursor.skip(4)
    player_name = cursor.read_cstring()
    extra = cursor.read_byte()
    cursor.skip(extra)
    logger.debug(f"Player name: {player_name!r} (id {player_id}, host={is_host})")

    game_name = cursor.read_cstring()
    cursor.skip(1)
    logger.debug(f"Game name: {game_name!r}")

    settings_offset = cursor.position
    decoded = decode_settings_blob(cursor.read_until_nul())
    logger.debug(f"Decoded game settings: {decoded.hex()}")
    settings, map_name, creator_name = parse_game_settings(decoded, settings_offset)

    header = Header(
        is_host=is_host,
        player_id=player_id,
        player_name=player_name,
        game_name=game_name,
        settings=settings,
        map_name=map_name,
        creator_name=creator_name,
    )
    header.player_slot_count = cursor.read_dword()
    header.game_type = cursor.read_byte()
    header.is_private_custom_game = cursor.read_byte()
    cursor.skip(2)
    # Possibly a language id
    cursor.skip(4)

    header.roster[player_id] = RosterEntry(battle_tag=player_name)
    tag = cursor.read_byte()
    while tag in PLAYER_RECORD_TAGS:
        pid, name = read_player_record(cursor)
        header.roster[pid] = RosterEntry(battle_tag=name)
        tag = cursor.read_byte()
    logger.debug(f"Loaded player list: {header.roster}")

    while tag == PLAYER_METADATA_TAG:
        subtype = cursor.read_byte()
        length = cursor.read_dword()
        logger.debug(f"Skipping player metadata record {subtype:#04x} ({length} bytes)")
        cursor.skip(length)
        tag = cursor.read_byte()

    if tag != GAME_START_TAG:
        raise ReplayFormatError(
            cursor.position - 1,
            f"Game start record did not follow player list: next record id = {tag:#04x}",
            tag=tag,
        )

    cursor.read_word()  # byte length of the slot table
    slot_count = cursor.read_byte()
    header.slots = [read_slot(cursor) for _ in range(slot_count)]

    header.random_seed = cursor.read_dword()
    header.selection_mode = cursor.read_byte()
    header.start_spot_count = cursor.read_byte()
    logger.debug(
        f"Random seed: {header.random_seed}, selection mode: {header.selection_mode}, "
        f"start spots: {header.start_spot_count}"
    )
    return header
