"""Typed domain exceptions for room and round rule violations.

Every rule violation raised by the round state machine or the room registry
is a subclass of GameRuleError carrying the ErrorCode reported to the
requesting client. SessionManager catches them at its boundary, replies to
the requester only and leaves room state untouched.
"""

from letterdash.logic.enums import ErrorCode


class GameRuleError(Exception):
    """Base exception for expected, caller-facing rule violations."""

    code: ErrorCode = ErrorCode.INVALID_INPUT


class RoomNotFoundError(GameRuleError):
    """No live room has the requested code."""

    code = ErrorCode.ROOM_NOT_FOUND


class NotHostError(GameRuleError):
    """A host-only transition was requested by another player."""

    code = ErrorCode.NOT_HOST


class NotPlayingError(GameRuleError):
    """Answers were submitted outside a running round or by a non-member."""

    code = ErrorCode.NOT_PLAYING


class RoundInProgressError(GameRuleError):
    """A round cannot be restarted while one is running."""

    code = ErrorCode.NOT_IN_LOBBY


class NotInReviewError(GameRuleError):
    """The operation is only valid while a closed round is being reviewed."""

    code = ErrorCode.NOT_IN_REVIEW


class AlreadyInRoomError(GameRuleError):
    """The connection already belongs to a room."""

    code = ErrorCode.ALREADY_IN_ROOM


class ServerFullError(GameRuleError):
    """The registry reached its configured room capacity."""

    code = ErrorCode.SERVER_FULL


class InvalidInputError(GameRuleError):
    """A request field is malformed or out of range."""

    code = ErrorCode.INVALID_INPUT
