from __future__ import annotations

import contextlib
import time
from typing import TYPE_CHECKING, Any

import structlog

from letterdash.logic.enums import RoomStatus
from letterdash.logic.exceptions import GameRuleError, RoomNotFoundError
from letterdash.logic.settings import GameSettings
from letterdash.messaging.types import (
    AnswersAcceptedMessage,
    ErrorMessage,
    PlayerTotal,
    PongMessage,
    RoomCreatedMessage,
    RoomJoinedMessage,
    RoomLeftMessage,
    RoomStateMessage,
    RoundTickMessage,
    ScoresUpdateMessage,
    SubmissionReceivedMessage,
    SubmissionsSnapshotMessage,
    SubmissionView,
)
from letterdash.session import round as round_machine
from letterdash.session.broadcast import broadcast_to_room, send_to_connection
from letterdash.session.codes import generate_room_code, normalize_room_code
from letterdash.session.room_manager import RoomRegistry
from letterdash.session.timer_manager import TimerManager

if TYPE_CHECKING:
    import random
    from collections.abc import Callable, Mapping

    from letterdash.logic.enums import Language
    from letterdash.logic.scoring import RoundResult
    from letterdash.messaging.protocol import ConnectionProtocol
    from letterdash.session.room import Room

logger = structlog.get_logger()


class SessionManager:
    """Translate connection events into registry and round transitions.

    Every request handler validates and mutates room state synchronously (no
    await until the mutation is complete), then publishes the resulting view.
    Rule violations are reported to the requester only and leave the room
    unchanged.
    """

    def __init__(
        self,
        settings: GameSettings | None = None,
        *,
        code_generator: Callable[[], str] = generate_room_code,
        max_rooms: int = 0,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings or GameSettings()
        self._rng = rng
        self._clock = clock
        self._connections: dict[str, ConnectionProtocol] = {}
        self._timer_manager = TimerManager(on_timeout=self._handle_round_timeout, on_tick=self._handle_round_tick)
        self._registry = RoomRegistry(
            self._settings,
            timer_manager=self._timer_manager,
            code_generator=code_generator,
            max_rooms=max_rooms,
        )

    @property
    def settings(self) -> GameSettings:
        return self._settings

    @property
    def room_count(self) -> int:
        return self._registry.room_count

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @property
    def playing_room_count(self) -> int:
        return sum(1 for room in self._registry.rooms() if room.status == RoomStatus.PLAYING)

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)

    def get_room(self, code: str) -> Room | None:
        return self._registry.get_room(code)

    def is_in_room(self, connection_id: str) -> bool:
        return self._registry.is_in_room(connection_id)

    def is_timer_armed(self, code: str) -> bool:
        return self._timer_manager.is_armed(normalize_room_code(code))

    def cancel_all_timers(self) -> None:
        self._timer_manager.cancel_all()

    # --- Membership ---

    async def create_room(
        self,
        connection: ConnectionProtocol,
        name: str | None,
        language: Language | None = None,
    ) -> None:
        try:
            room = self._registry.create_room(connection, name, language)
        except GameRuleError as e:
            await self._send_error(connection, e)
            return

        logger.info("player joined", room_code=room.code, player_id=connection.connection_id, host=True)
        reply = RoomCreatedMessage(room_code=room.code, player_id=connection.connection_id).model_dump()
        state = self._room_state(room)

        await send_to_connection(connection, reply)
        await broadcast_to_room(room, state)

    async def join_room(self, connection: ConnectionProtocol, code: str, name: str | None) -> None:
        try:
            room = self._registry.get_room(code)
            if room is None:
                raise RoomNotFoundError("Room does not exist")
            self._registry.add_player(room, connection, name)
        except GameRuleError as e:
            await self._send_error(connection, e)
            return

        logger.info("player joined", room_code=room.code, player_id=connection.connection_id, host=False)
        reply = RoomJoinedMessage(room_code=room.code, player_id=connection.connection_id).model_dump()
        snapshot = self._submissions_snapshot(room)
        state = self._room_state(room)

        await send_to_connection(connection, reply)
        await send_to_connection(connection, snapshot)
        await broadcast_to_room(room, state)

    async def leave_room(self, connection: ConnectionProtocol, *, notify_player: bool = True) -> None:
        """Handle an explicit leave or a dropped connection."""
        departure = self._registry.remove_player(connection.connection_id)
        if departure is None:
            return

        room = departure.room
        log = logger.bind(room_code=room.code, player_id=connection.connection_id)
        log.info(
            "player left",
            name=departure.player.name,
            room_destroyed=departure.room_destroyed,
            host_changed=departure.host_changed,
        )

        result = None
        if not departure.room_destroyed and room.status == RoomStatus.PLAYING and room.all_submitted:
            result = self._close_round(room)
        messages = [] if departure.room_destroyed else self._round_close_messages(room, result)

        if notify_player:
            await send_to_connection(connection, RoomLeftMessage().model_dump())
        for message in messages:
            await broadcast_to_room(room, message)

    # --- Round transitions ---

    async def start_round(
        self,
        connection: ConnectionProtocol,
        code: str,
        duration_seconds: int | None = None,
    ) -> None:
        try:
            room = self._resolve_room(code)
            round_machine.start_round(
                room,
                connection.connection_id,
                self._settings,
                duration_seconds=duration_seconds,
                now=self._clock(),
                rng=self._rng,
            )
        except GameRuleError as e:
            await self._send_error(connection, e)
            return

        self._timer_manager.arm(
            room.code,
            room.round,
            room.duration_seconds,
            tick_interval=self._settings.tick_interval_seconds,
        )
        logger.info(
            "round started",
            room_code=room.code,
            round=room.round,
            letter=room.letter,
            duration_seconds=room.duration_seconds,
        )
        await broadcast_to_room(room, self._room_state(room))

    async def submit_answers(
        self,
        connection: ConnectionProtocol,
        code: str,
        answers: Mapping[str, Any],
    ) -> None:
        try:
            room = self._resolve_room(code)
            all_submitted = round_machine.submit_answers(room, connection.connection_id, answers)
        except GameRuleError as e:
            await self._send_error(connection, e)
            return

        round_number = room.round
        stored = dict(room.submissions[connection.connection_id])
        result = self._close_round(room) if all_submitted else None

        ack = AnswersAcceptedMessage(room_code=room.code, round=round_number).model_dump()
        live = None
        if self._settings.live_submissions:
            live = SubmissionReceivedMessage(
                room_code=room.code,
                round=round_number,
                player_id=connection.connection_id,
                answers=stored,
            ).model_dump()
        messages = self._round_close_messages(room, result)

        await send_to_connection(connection, ack)
        if live is not None:
            await broadcast_to_room(room, live)
        for message in messages:
            await broadcast_to_room(room, message)

    async def advance_round(self, connection: ConnectionProtocol, code: str) -> None:
        try:
            room = self._resolve_room(code)
            round_machine.advance_round(room, connection.connection_id)
        except GameRuleError as e:
            await self._send_error(connection, e)
            return

        logger.info("room back in lobby", room_code=room.code, round=room.round)
        await broadcast_to_room(room, self._room_state(room))

    async def award_points(
        self,
        connection: ConnectionProtocol,
        code: str,
        player_id: str,
        points: int,
    ) -> None:
        try:
            room = self._resolve_room(code)
            result = round_machine.award_points(room, connection.connection_id, player_id, points, self._settings)
        except GameRuleError as e:
            await self._send_error(connection, e)
            return

        logger.info("points awarded", room_code=room.code, round=room.round, player_id=player_id, points=points)
        for message in (self._scores_update(room, result), self._room_state(room)):
            await broadcast_to_room(room, message)

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        await send_to_connection(connection, PongMessage().model_dump())

    # --- Timer callbacks ---

    async def _handle_round_timeout(self, code: str, round_number: int) -> None:
        room = self._registry.get_room(code)
        if room is None:
            logger.debug("round timer fired for a removed room", room_code=code)
            return
        result = self._close_round(room, expected_round=round_number)
        if result is None:
            logger.debug("stale round timer ignored", room_code=code, round=round_number)
            return
        for message in self._round_close_messages(room, result):
            await broadcast_to_room(room, message)

    async def _handle_round_tick(self, code: str, round_number: int, remaining: float) -> None:
        room = self._registry.get_room(code)
        if room is None or room.status != RoomStatus.PLAYING or room.round != round_number:
            return
        tick = RoundTickMessage(room_code=room.code, round=round_number, remaining_seconds=round(remaining, 1))
        await broadcast_to_room(room, tick.model_dump())

    # --- Internal helpers ---

    def _resolve_room(self, code: str) -> Room:
        """Room addressed by a room-scoped request; membership is checked by the round rules."""
        room = self._registry.get_room(code)
        if room is None:
            raise RoomNotFoundError("Room does not exist")
        return room

    def _close_round(self, room: Room, *, expected_round: int | None = None) -> RoundResult | None:
        """Close the running round once; cancels its timer when the close happens."""
        result = round_machine.close_round(room, self._settings.scoring, expected_round=expected_round)
        if result is None:
            return None
        self._timer_manager.cancel(room.code)
        logger.info(
            "round closed",
            room_code=room.code,
            round=room.round,
            submissions=len(room.submissions),
            players=room.player_count,
        )
        return result

    def _round_close_messages(self, room: Room, result: RoundResult | None) -> list[dict[str, Any]]:
        """Messages to publish after a change: scores first when a round just closed."""
        if result is None:
            return [self._room_state(room)]
        return [self._scores_update(room, result), self._room_state(room)]

    def _scores_update(self, room: Room, result: RoundResult) -> dict[str, Any]:
        return ScoresUpdateMessage(
            room_code=room.code,
            round=room.round,
            round_points=dict(result.round_points),
            breakdown={player_id: dict(points) for player_id, points in result.breakdown.items()},
            totals=dict(room.total_scores),
        ).model_dump()

    def _submission_views(self, room: Room, *, include_answers: bool) -> list[SubmissionView]:
        result = room.last_result if room.status == RoomStatus.REVIEW else None
        views = []
        for player_id in room.submitted_ids:
            views.append(
                SubmissionView(
                    player_id=player_id,
                    name=room.players[player_id].name,
                    answers=dict(room.submissions[player_id]) if include_answers else None,
                    round_points=result.round_points.get(player_id, 0) if result is not None else None,
                    breakdown=dict(result.breakdown.get(player_id, {})) if result is not None else None,
                ),
            )
        return views

    def _submissions_snapshot(self, room: Room) -> dict[str, Any]:
        include_answers = room.status == RoomStatus.REVIEW or self._settings.live_submissions
        return SubmissionsSnapshotMessage(
            room_code=room.code,
            round=room.round,
            submissions=self._submission_views(room, include_answers=include_answers),
        ).model_dump()

    def _room_state(self, room: Room) -> dict[str, Any]:
        in_review = room.status == RoomStatus.REVIEW
        totals = [
            PlayerTotal(
                id=player_id,
                name=room.display_names.get(player_id, ""),
                score=score,
                present=player_id in room.players,
            )
            for player_id, score in room.total_scores.items()
        ]
        return RoomStateMessage(
            room_code=room.code,
            host_id=room.host_connection_id,
            status=room.status,
            round=room.round,
            letter=room.letter,
            duration_seconds=room.duration_seconds,
            deadline=room.deadline,
            categories=list(room.categories),
            players=room.get_player_info(),
            totals=totals,
            submission_count=len(room.submissions),
            submitted=room.submitted_ids,
            submissions=self._submission_views(room, include_answers=True) if in_review else None,
        ).model_dump()

    async def _send_error(self, connection: ConnectionProtocol, error: GameRuleError) -> None:
        logger.info("request rejected", player_id=connection.connection_id, code=error.code, reason=str(error))
        with contextlib.suppress(RuntimeError, OSError, ConnectionError):
            await connection.send_message(ErrorMessage(code=error.code, message=str(error)).model_dump())
