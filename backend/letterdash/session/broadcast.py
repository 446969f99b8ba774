"""Broadcast channel: deliver messages to a room's members or to one connection."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from letterdash.messaging.protocol import ConnectionProtocol
    from letterdash.session.room import Room


async def send_to_connection(connection: ConnectionProtocol, message: dict[str, Any]) -> bool:
    """Send to a single connection. Return False if the connection is gone."""
    try:
        await connection.send_message(message)
    except (RuntimeError, OSError, ConnectionError):  # fmt: skip
        return False
    return True


async def broadcast_to_room(
    room: Room,
    message: dict[str, Any],
    exclude_connection_id: str | None = None,
) -> None:
    """Send a message to every member of the room in player order.

    Recipients are captured before the first send, so a leave processed while
    a send is suspended neither breaks the loop nor reaches the new member
    list. A dead connection does not stop delivery to the others; its
    disconnect path removes it.
    """
    recipients = [
        room.players[player_id].connection
        for player_id in room.player_order
        if player_id != exclude_connection_id
    ]
    for connection in recipients:
        with contextlib.suppress(RuntimeError, OSError, ConnectionError):
            await connection.send_message(message)
