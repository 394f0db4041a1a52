import json

import pytest

from w3gparse.cursor import ByteCursor
from w3gparse.enums import (
    ComputerAIStrength,
    LeaveReason,
    SlotColor,
    SlotRace,
    SlotStatus,
)
from w3gparse.errors import ReplayFormatError, TruncatedReplayError
from w3gparse.header import parse_header, read_slot
from tests.conftest import CREATOR, MAP_NAME, build_header, settings_blob, slot


def parse(data: bytes):
    cursor = ByteCursor(data)
    return parse_header(cursor), cursor


def test_header_fields():
    header, cursor = parse(build_header(settings=settings_blob(speed=1, flags=(0b1000, 0, 0))))
    assert header.is_host
    assert header.player_id == 1
    assert header.player_name == "Alice#1111"
    assert header.game_name == "Local Game (Alice)"
    assert header.map_name == MAP_NAME
    assert header.creator_name == CREATOR
    assert header.settings.game_speed == 1
    assert header.settings.vis_default
    assert header.player_slot_count == 2
    assert header.game_type == 0x01
    assert header.random_seed == 0xDEADBEEF
    assert header.start_spot_count == 2
    assert cursor.at_end()


def test_not_host():
    header, _ = parse(build_header(host=False))
    assert not header.is_host


def test_roster():
    header, _ = parse(build_header(players=[(2, "Bob#2222"), (3, "Carol#3333")]))
    assert sorted(header.roster) == [1, 2, 3]
    assert header.roster[1].battle_tag == "Alice#1111"
    assert header.roster[3].battle_tag == "Carol#3333"
    for entry in header.roster.values():
        assert entry.leave_reason == LeaveReason.UNKNOWN
        assert entry.result_byte == 0
        assert entry.left_at == 0


def test_player_record_tag_zero():
    data = build_header(players=[(2, "Bob#2222")])
    # Same record, introduced by 0x00 rather than 0x16
    data = data.replace(b"\x16\x02Bob", b"\x00\x02Bob")
    header, _ = parse(data)
    assert header.roster[2].battle_tag == "Bob#2222"


def test_metadata_records_are_skipped():
    header, cursor = parse(
        build_header(metadata=[(0x03, b"\x19" * 30), (0x04, b"")])
    )
    assert len(header.slots) == 2
    assert cursor.at_end()


def test_missing_game_start_record():
    data = build_header(start_tag=0x20)
    with pytest.raises(ReplayFormatError) as e:
        parse(data)
    assert e.value.tag == 0x20
    assert "0x20" in str(e.value)


def test_truncated_header():
    data = build_header()
    with pytest.raises(TruncatedReplayError):
        parse(data[:-3])


def test_slots():
    header, _ = parse(
        build_header(
            slots=[
                slot(1, color=0, race=0x04),
                slot(0, status=1, computer=1, team=1, color=24, race=40, ai=2),
                slot(0, status=7, color=25, race=0x03, ai=9),
            ]
        )
    )
    first, second, third = header.slots
    assert first.player_id == 1
    assert first.status == SlotStatus.OCCUPIED
    assert first.color == SlotColor.RED
    assert first.race == SlotRace.NIGHTELF
    assert first.ai_strength == ComputerAIStrength.NORMAL
    assert first.handicap_percent == 100
    assert first.map_download_percent == 100
    assert not first.is_computer

    assert second.status == SlotStatus.CLOSED
    assert second.is_computer
    assert second.team_index == 1
    assert second.color == SlotColor.OBSERVER
    assert second.race == SlotRace.FIXED
    assert second.ai_strength == ComputerAIStrength.INSANE

    assert third.status == SlotStatus.UNKNOWN
    assert third.color == SlotColor.UNKNOWN
    assert third.race == SlotRace.UNKNOWN
    assert third.ai_strength == ComputerAIStrength.UNKNOWN
    assert (third.status_raw, third.color_raw, third.race_raw, third.ai_strength_raw) == (7, 25, 0x03, 9)
    assert first.race_raw is None
    assert first.color_raw is None


@pytest.mark.parametrize(
    "color_byte,color",
    [(0, SlotColor.RED), (1, SlotColor.BLUE), (23, SlotColor.PEANUT), (24, SlotColor.OBSERVER), (25, SlotColor.UNKNOWN), (255, SlotColor.UNKNOWN)],
)
def test_slot_color_is_zero_based(color_byte, color):
    assert read_slot(ByteCursor(slot(color=color_byte))).color == color


def test_unknown_race_keeps_wire_value():
    data = json.loads(read_slot(ByteCursor(slot(race=0x03))).model_dump_json(exclude_none=True))
    assert data["race"] == "UNKNOWN"
    assert data["race_raw"] == 0x03
    assert data["color"] == "RED"
    assert "color_raw" not in data
    assert "status_raw" not in data
