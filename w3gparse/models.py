"""Decoded replay structure, as handed to callers."""

from __future__ import annotations

import struct
from enum import Enum
from typing import Dict, List, Optional, Type, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer
from typing_extensions import Annotated, TypeVar

from .enums import (
    ActionType,
    ComputerAIStrength,
    LeaveReason,
    SelectionMode,
    SlotColor,
    SlotRace,
    SlotStatus,
)

T = TypeVar("T", bound=Enum)


def _from_name(t: Type[T]):
    def get(n: Union[None, str, int, T]) -> Optional[T]:
        if n is None or isinstance(n, Enum):
            return n
        if isinstance(n, int):
            return t(n)
        return getattr(t, n)

    return get


def _validator(t: Type[T]):
    return BeforeValidator(_from_name(t))


_serialize = PlainSerializer(lambda x: x.name, when_used="json-unless-none")


def _shortest_f32(x: float) -> float:
    """Fewest digits that still read back as the same 32-bit float."""
    exact = struct.pack("<f", x)
    for digits in range(1, 10):
        candidate = float(f"{x:.{digits}g}")
        if struct.pack("<f", candidate) == exact:
            return candidate
    return x


F32 = Annotated[float, PlainSerializer(_shortest_f32, when_used="json")]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class MapLocation(_Frozen):
    x: F32
    y: F32


class ObjectIDs(_Frozen):
    id1: int
    id2: int


class ReplayMeta(_Frozen):
    saving_player_id: int
    is_saving_player_host: bool
    game_name: str
    map_name: str
    game_creator_battle_tag: str


class GameSettings(_Frozen):
    game_speed: int
    vis_hide_terrain: bool
    vis_map_explored: bool
    vis_always_visible: bool
    vis_default: bool
    obs_mode: int
    teams_together: bool
    fixed_teams: int
    shared_unit_control: bool
    random_hero: bool
    random_races: bool
    obs_referees: bool


class Slot(_Frozen):
    player_id: int
    map_download_percent: int
    status: Annotated[SlotStatus, _validator(SlotStatus), _serialize]
    is_computer: bool
    team_index: int
    color: Annotated[SlotColor, _validator(SlotColor), _serialize]
    race: Annotated[SlotRace, _validator(SlotRace), _serialize]
    ai_strength: Annotated[ComputerAIStrength, _validator(ComputerAIStrength), _serialize]
    handicap_percent: int
    # Wire values of fields that decoded to UNKNOWN; the color is the 0-based byte.
    status_raw: Optional[int] = None
    color_raw: Optional[int] = None
    race_raw: Optional[int] = None
    ai_strength_raw: Optional[int] = None


class ReplayPlayer(_Frozen):
    battle_tag: str
    leave_reason: Annotated[LeaveReason, _validator(LeaveReason), _serialize] = LeaveReason.UNKNOWN
    leave_reason_raw: Optional[int] = None
    result_byte: int = 0
    left_at: int = 0


class ChatMessage(_Frozen):
    sender_player_id: int
    recipient_slot_number: Optional[int] = None
    flag: Optional[int] = None
    message: str
    timestamp: int


class ActionData(_Frozen):
    """Payload of an action; only the fields its opcode carries are set."""

    location: Optional[MapLocation] = None
    savegame_name: Optional[str] = None
    item_id: Optional[str] = None
    unknownA: Optional[int] = None
    unknownB: Optional[int] = None
    unknownC: Optional[int] = None
    objects: Optional[List[ObjectIDs]] = None
    ability_flags: Optional[int] = None
    sel_mode: Annotated[Optional[SelectionMode], _validator(SelectionMode), _serialize] = None
    sel_mode_raw: Optional[int] = None
    group_id: Optional[int] = None
    target_obj_id_1: Optional[int] = None
    target_obj_id_2: Optional[int] = None
    item_obj_id_1: Optional[int] = None
    item_obj_id_2: Optional[int] = None


class Action(_Frozen):
    player_id: int
    timestamp: int
    action_type: Annotated[ActionType, _validator(ActionType), _serialize]
    data: Optional[ActionData] = None


class Replay(_Frozen):
    version: int
    metadata: ReplayMeta
    game_settings: GameSettings
    slots: List[Slot] = []
    players: Dict[int, ReplayPlayer] = {}
    chat: List[ChatMessage] = []
    actions: List[Action] = []

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize with enums by name and absent optional fields left out."""
        return self.model_dump_json(indent=indent, exclude_none=True)
