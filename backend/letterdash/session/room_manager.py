"""Room registry: creation, lookup, membership and destruction of live rooms."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from letterdash.logic.exceptions import AlreadyInRoomError, ServerFullError
from letterdash.session.codes import generate_room_code, normalize_room_code
from letterdash.session.room import Room, RoomPlayer, sanitize_name

if TYPE_CHECKING:
    from collections.abc import Callable

    from letterdash.logic.enums import Language
    from letterdash.logic.settings import GameSettings
    from letterdash.messaging.protocol import ConnectionProtocol
    from letterdash.session.timer_manager import TimerManager

logger = structlog.get_logger()

_MAX_CODE_ATTEMPTS = 100


@dataclass(frozen=True)
class Departure:
    """Outcome of removing a player from their room."""

    room: Room
    player: RoomPlayer
    previous_host_id: str | None
    room_destroyed: bool

    @property
    def host_changed(self) -> bool:
        return self.room.host_connection_id != self.previous_host_id


class RoomRegistry:
    """Own every live room, keyed by code.

    Purely state management: no connection I/O. The registry is the only
    place rooms are added or removed, and a room is removed in the same call
    that empties it. Removing a room always cancels its round timer first.
    """

    def __init__(
        self,
        settings: GameSettings,
        *,
        timer_manager: TimerManager,
        code_generator: Callable[[], str] = generate_room_code,
        max_rooms: int = 0,
    ) -> None:
        self._settings = settings
        self._timer_manager = timer_manager
        self._code_generator = code_generator
        self._max_rooms = max_rooms
        self._rooms: dict[str, Room] = {}
        self._player_rooms: dict[str, str] = {}  # connection_id -> room code

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    def rooms(self) -> list[Room]:
        return list(self._rooms.values())

    def get_room(self, code: str) -> Room | None:
        return self._rooms.get(normalize_room_code(code))

    def room_of(self, connection_id: str) -> Room | None:
        code = self._player_rooms.get(connection_id)
        return self._rooms.get(code) if code is not None else None

    def is_in_room(self, connection_id: str) -> bool:
        return connection_id in self._player_rooms

    def create_room(
        self,
        connection: ConnectionProtocol,
        name: str | None,
        language: Language | None = None,
    ) -> Room:
        """Create a room with the requester as host and first player."""
        if self.is_in_room(connection.connection_id):
            raise AlreadyInRoomError("Leave your current room first")
        if self._max_rooms and self.room_count >= self._max_rooms:
            raise ServerFullError("Server at capacity")

        room = Room(
            code=self._new_code(),
            categories=self._settings.categories,
            language=language or self._settings.default_language,
            duration_seconds=self._settings.default_duration_seconds,
        )
        self._rooms[room.code] = room
        self.add_player(room, connection, name)
        logger.info("room created", room_code=room.code, language=room.language)
        return room

    def add_player(self, room: Room, connection: ConnectionProtocol, name: str | None) -> RoomPlayer:
        """Register a connection in the room; the first member becomes host."""
        connection_id = connection.connection_id
        if self.is_in_room(connection_id):
            raise AlreadyInRoomError("Leave your current room first")

        player = RoomPlayer(connection=connection, name=sanitize_name(name))
        room.players[connection_id] = player
        room.player_order.append(connection_id)
        room.total_scores.setdefault(connection_id, 0)
        room.display_names[connection_id] = player.name
        self._player_rooms[connection_id] = room.code

        if room.host_connection_id is None:
            room.host_connection_id = connection_id
        return player

    def remove_player(self, connection_id: str) -> Departure | None:
        """Remove a connection from its room.

        Reassigns the host to the earliest-joined remaining player and destroys
        the room when nobody is left. Return None if the connection was not in
        a room.
        """
        code = self._player_rooms.pop(connection_id, None)
        if code is None:
            return None
        room = self._rooms.get(code)
        if room is None:  # pragma: no cover - rooms are removed together with their index entries
            return None

        player = room.players.pop(connection_id)
        room.player_order.remove(connection_id)
        room.submissions.pop(connection_id, None)
        if not self._settings.retain_scores_on_leave:
            room.total_scores.pop(connection_id, None)
            room.display_names.pop(connection_id, None)

        previous_host_id = room.host_connection_id
        if previous_host_id == connection_id:
            room.host_connection_id = room.next_host_id()
            if room.host_connection_id is not None:
                logger.info("host reassigned", room_code=code, host_id=room.host_connection_id)

        destroyed = room.is_empty
        if destroyed:
            self.remove_room(code)
        return Departure(room=room, player=player, previous_host_id=previous_host_id, room_destroyed=destroyed)

    def remove_room(self, code: str) -> Room | None:
        """Cancel the room's timer and drop it from the registry."""
        code = normalize_room_code(code)
        self._timer_manager.cancel(code)
        room = self._rooms.pop(code, None)
        if room is None:
            return None
        for connection_id in room.player_order:
            self._player_rooms.pop(connection_id, None)
        room.host_connection_id = None
        logger.info(
            "room destroyed",
            room_code=code,
            rounds_played=room.round,
            lifetime_seconds=round(time.monotonic() - room.created_at, 1),
        )
        return room

    def _new_code(self) -> str:
        for _ in range(_MAX_CODE_ATTEMPTS):
            code = normalize_room_code(self._code_generator())
            if code not in self._rooms:
                return code
        raise RuntimeError("could not generate a unique room code")
