from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from letterdash.logic.enums import ErrorCode
from letterdash.messaging.types import (
    AdvanceRoundMessage,
    AwardPointsMessage,
    CreateRoomMessage,
    ErrorMessage,
    JoinRoomMessage,
    LeaveRoomMessage,
    PingMessage,
    StartRoundMessage,
    SubmitAnswersMessage,
    parse_client_message,
)

if TYPE_CHECKING:
    from letterdash.messaging.protocol import ConnectionProtocol
    from letterdash.session.manager import SessionManager

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Routes decoded client messages to the session manager.

    Validation failures are answered with an invalid_input error to the
    sender only. This class holds no state and can be tested without real
    WebSocket connections.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message from %s: %s", connection.connection_id, e)
            await connection.send_message(
                ErrorMessage(code=ErrorCode.INVALID_INPUT, message=_describe_validation_error(e)).model_dump(),
            )
            return

        try:
            await self._dispatch(connection, message)
        except Exception:
            logger.exception("unexpected error handling %s from %s", message.type, connection.connection_id)
            await connection.send_message(
                ErrorMessage(code=ErrorCode.INVALID_INPUT, message="Request could not be processed").model_dump(),
            )

    async def _dispatch(self, connection: ConnectionProtocol, message: object) -> None:
        manager = self._session_manager
        if isinstance(message, CreateRoomMessage):
            await manager.create_room(connection, message.name, message.language)
        elif isinstance(message, JoinRoomMessage):
            await manager.join_room(connection, message.room_code, message.name)
        elif isinstance(message, LeaveRoomMessage):
            await manager.leave_room(connection)
        elif isinstance(message, StartRoundMessage):
            await manager.start_round(connection, message.room_code, message.duration_seconds)
        elif isinstance(message, SubmitAnswersMessage):
            await manager.submit_answers(connection, message.room_code, message.answers)
        elif isinstance(message, AdvanceRoundMessage):
            await manager.advance_round(connection, message.room_code)
        elif isinstance(message, AwardPointsMessage):
            await manager.award_points(connection, message.room_code, message.player_id, message.points)
        elif isinstance(message, PingMessage):
            await manager.handle_ping(connection)

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.leave_room(connection, notify_player=False)
        self._session_manager.unregister_connection(connection)


def _describe_validation_error(error: Exception) -> str:
    """Short client-facing description: field locations only, no echoed input."""
    if isinstance(error, ValidationError):
        fields = sorted({".".join(str(part) for part in item["loc"]) or "message" for item in error.errors()})
        return f"Invalid fields: {', '.join(fields)}"
    return "Malformed message"
