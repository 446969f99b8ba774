"""Room model: one isolated game session identified by a short code."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel

from letterdash.logic.enums import Language, RoomStatus
from letterdash.logic.settings import MAX_PLAYER_NAME_LENGTH

if TYPE_CHECKING:
    from letterdash.logic.scoring import RoundResult
    from letterdash.messaging.protocol import ConnectionProtocol

DEFAULT_PLAYER_NAME = "Player"

# ASCII control character boundaries for name sanitizing
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F


def sanitize_name(raw: str | None) -> str:
    """Strip control characters and surrounding whitespace, then truncate."""
    text = "".join(c for c in (raw or "") if ord(c) >= _SPACE_ORD and ord(c) != _DEL_ORD).strip()
    return text[:MAX_PLAYER_NAME_LENGTH].strip() or DEFAULT_PLAYER_NAME


class RoomPlayerInfo(BaseModel):
    """Player info for room state messages."""

    id: str
    name: str
    is_host: bool
    submitted: bool


@dataclass
class RoomPlayer:
    """A connection's membership in one room."""

    connection: ConnectionProtocol
    name: str

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id


@dataclass
class Room:
    """Game session state.

    Mutated only through the registry (membership) and the round state
    machine (status, round, letter, deadline, submissions, scores).
    player_order keeps join order explicitly: it is the display order and the
    host succession order.
    """

    code: str
    categories: tuple[str, ...]
    language: Language
    duration_seconds: int
    host_connection_id: str | None = None
    status: RoomStatus = RoomStatus.LOBBY
    round: int = 0
    letter: str = ""
    deadline: float | None = None
    players: dict[str, RoomPlayer] = field(default_factory=dict)  # connection_id -> RoomPlayer
    player_order: list[str] = field(default_factory=list)
    submissions: dict[str, dict[str, str]] = field(default_factory=dict)  # connection_id -> category -> answer
    total_scores: dict[str, int] = field(default_factory=dict)  # connection_id -> points
    display_names: dict[str, str] = field(default_factory=dict)  # connection_id -> last known name
    last_result: RoundResult | None = None
    created_at: float = field(default_factory=time.monotonic)

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_empty(self) -> bool:
        return self.player_count == 0

    @property
    def all_submitted(self) -> bool:
        return bool(self.players) and len(self.submissions) == len(self.players)

    @property
    def submitted_ids(self) -> list[str]:
        """Submitters of the current round, in player order."""
        return [player_id for player_id in self.player_order if player_id in self.submissions]

    def next_host_id(self) -> str | None:
        """Successor host: the earliest-joined remaining player."""
        return self.player_order[0] if self.player_order else None

    def get_player_info(self) -> list[RoomPlayerInfo]:
        """Return player info in join order."""
        return [
            RoomPlayerInfo(
                id=player_id,
                name=self.players[player_id].name,
                is_host=player_id == self.host_connection_id,
                submitted=player_id in self.submissions,
            )
            for player_id in self.player_order
        ]
