"""Decode replay files into a Replay structure."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, Optional, Union

from .actions import CHAT_DEDUP_WINDOW
from .container import Inflate, read_container, zlib_inflate
from .cursor import ByteCursor
from .diagnostics import Diagnostics, NullDiagnostics
from .enums import LeaveReason
from .header import RosterEntry, parse_header
from .models import Replay, ReplayMeta
from .records import parse_records

logger = logging.getLogger(__name__)

SERVICE_ACCOUNTS = ("FLO",)
"""Hosting bots that show up in the player list but never record replays."""


def find_saving_player(
    players: Dict[int, RosterEntry], service_accounts: Iterable[str] = SERVICE_ACCOUNTS
) -> Optional[int]:
    """Guess which player recorded the replay from how everyone left.

    The recording client sees itself leave with a local close; if more than one
    player did, skip the known service accounts."""
    candidates = [
        pid
        for pid, p in players.items()
        if p.leave_reason == LeaveReason.CONNECTION_CLOSED_BY_LOCAL_GAME
    ]
    if len(candidates) == 1:
        return candidates[0]
    accounts = set(service_accounts)
    for pid in candidates:
        if players[pid].battle_tag not in accounts:
            return pid
    return None


def decode_stream(
    raw: bytes,
    version: int = 0,
    diagnostics: Optional[Diagnostics] = None,
    service_accounts: Iterable[str] = SERVICE_ACCOUNTS,
    chat_window: int = CHAT_DEDUP_WINDOW,
) -> Replay:
    """Decode an already-decompressed replay stream."""
    diagnostics = diagnostics or NullDiagnostics()
    cursor = ByteCursor(raw)
    header = parse_header(cursor)
    stream = parse_records(cursor, header.roster, diagnostics, chat_window)

    candidate = find_saving_player(header.roster, service_accounts)
    if candidate != stream.last_leaver_id:
        # saving_player_id has always been the last leaver; keep it that way.
        logger.debug(
            f"Saving player candidate {candidate} differs from last leaver "
            f"{stream.last_leaver_id}"
        )
    logger.info(
        f"Decoded {len(stream.actions)} actions and {len(stream.chat)} chat messages"
    )
    return Replay(
        version=version,
        metadata=ReplayMeta(
            saving_player_id=stream.last_leaver_id,
            is_saving_player_host=header.is_host,
            game_name=header.game_name,
            map_name=header.map_name,
            game_creator_battle_tag=header.creator_name,
        ),
        game_settings=header.settings,
        slots=header.slots,
        players={pid: p.freeze() for pid, p in header.roster.items()},
        chat=stream.chat,
        actions=stream.actions,
    )


def decode(
    data: bytes,
    inflate: Inflate = zlib_inflate,
    diagnostics: Optional[Diagnostics] = None,
    service_accounts: Iterable[str] = SERVICE_ACCOUNTS,
    chat_window: int = CHAT_DEDUP_WINDOW,
) -> Replay:
    """Decode a whole replay file held in memory.

    Raises TruncatedReplayError or ReplayFormatError if the replay cannot be
    decoded; a block that fails to inflate only cuts the stream short."""
    container = read_container(data, inflate, diagnostics)
    return decode_stream(
        container.data,
        version=container.version,
        diagnostics=diagnostics,
        service_accounts=service_accounts,
        chat_window=chat_window,
    )


def load_replay(replay: Union[Path, BinaryIO], **kwargs) -> Replay:
    """Read and decode a replay file."""
    if isinstance(replay, Path):
        replay = replay.open("rb")
    with replay:
        data = replay.read()
    return decode(data, **kwargs)
