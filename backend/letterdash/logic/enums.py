"""
String enum definitions for room, round and error concepts.
"""

from enum import StrEnum


class RoomStatus(StrEnum):
    """Lifecycle state of a room."""

    LOBBY = "lobby"
    PLAYING = "playing"
    REVIEW = "review"


class Language(StrEnum):
    """Alphabet a room draws its round letters from."""

    PERSIAN = "fa"
    ENGLISH = "en"


class ErrorCode(StrEnum):
    """Error codes sent to the requesting client only."""

    ROOM_NOT_FOUND = "room_not_found"
    NOT_HOST = "not_host"
    NOT_PLAYING = "not_playing"
    INVALID_INPUT = "invalid_input"
    ALREADY_IN_ROOM = "already_in_room"
    NOT_IN_LOBBY = "not_in_lobby"
    NOT_IN_REVIEW = "not_in_review"
    SERVER_FULL = "server_full"
    RATE_LIMITED = "rate_limited"
