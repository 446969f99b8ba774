from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from letterdash.logic.enums import ErrorCode, Language, RoomStatus
from letterdash.session.room import RoomPlayerInfo

_ROOM_CODE_FIELD = Field(min_length=1, max_length=16)
_NAME_FIELD = Field(default="", max_length=200)


class ServerMessageType(StrEnum):
    ROOM_CREATED = "room_created"
    ROOM_JOINED = "room_joined"
    ROOM_LEFT = "room_left"
    ROOM_STATE = "room_state"
    SUBMISSIONS_SNAPSHOT = "submissions_snapshot"
    SUBMISSION_RECEIVED = "submission_received"
    ANSWERS_ACCEPTED = "answers_accepted"
    SCORES_UPDATE = "scores_update"
    ROUND_TICK = "round_tick"
    ERROR = "error"
    PONG = "pong"


# --- Client -> server ---


class CreateRoomMessage(BaseModel):
    type: Literal["create_room"] = "create_room"
    name: str = _NAME_FIELD
    language: Language | None = None


class JoinRoomMessage(BaseModel):
    type: Literal["join_room"] = "join_room"
    room_code: str = _ROOM_CODE_FIELD
    name: str = _NAME_FIELD


class LeaveRoomMessage(BaseModel):
    type: Literal["leave_room"] = "leave_room"


class StartRoundMessage(BaseModel):
    type: Literal["start_round"] = "start_round"
    room_code: str = _ROOM_CODE_FIELD
    duration_seconds: int | None = None


class SubmitAnswersMessage(BaseModel):
    type: Literal["submit_answers"] = "submit_answers"
    room_code: str = _ROOM_CODE_FIELD
    # values are coerced per category by the round state machine, not rejected
    answers: dict[str, Any]


class AdvanceRoundMessage(BaseModel):
    type: Literal["advance_round"] = "advance_round"
    room_code: str = _ROOM_CODE_FIELD


class AwardPointsMessage(BaseModel):
    type: Literal["award_points"] = "award_points"
    room_code: str = _ROOM_CODE_FIELD
    player_id: str = Field(min_length=1, max_length=100)
    points: int


class PingMessage(BaseModel):
    type: Literal["ping"] = "ping"


ClientMessage = Annotated[
    CreateRoomMessage
    | JoinRoomMessage
    | LeaveRoomMessage
    | StartRoundMessage
    | SubmitAnswersMessage
    | AdvanceRoundMessage
    | AwardPointsMessage
    | PingMessage,
    Field(discriminator="type"),
]

_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Validate a decoded frame into a typed client message."""
    return _client_message_adapter.validate_python(data)


# --- Server -> client ---


class PlayerTotal(BaseModel):
    id: str
    name: str
    score: int
    present: bool


class SubmissionView(BaseModel):
    """One player's submission. Answers are omitted while they must stay private."""

    player_id: str
    name: str
    answers: dict[str, str] | None = None
    round_points: int | None = None
    breakdown: dict[str, int] | None = None


class RoomCreatedMessage(BaseModel):
    type: Literal[ServerMessageType.ROOM_CREATED] = ServerMessageType.ROOM_CREATED
    room_code: str
    player_id: str


class RoomJoinedMessage(BaseModel):
    type: Literal[ServerMessageType.ROOM_JOINED] = ServerMessageType.ROOM_JOINED
    room_code: str
    player_id: str


class RoomLeftMessage(BaseModel):
    type: Literal[ServerMessageType.ROOM_LEFT] = ServerMessageType.ROOM_LEFT


class RoomStateMessage(BaseModel):
    """Full public snapshot of a room, broadcast after every accepted change."""

    type: Literal[ServerMessageType.ROOM_STATE] = ServerMessageType.ROOM_STATE
    room_code: str
    host_id: str | None
    status: RoomStatus
    round: int
    letter: str
    duration_seconds: int
    deadline: float | None
    categories: list[str]
    players: list[RoomPlayerInfo]
    totals: list[PlayerTotal]
    submission_count: int
    submitted: list[str]
    submissions: list[SubmissionView] | None = None


class SubmissionsSnapshotMessage(BaseModel):
    """Sent privately to a joining player: the current round's submissions so far."""

    type: Literal[ServerMessageType.SUBMISSIONS_SNAPSHOT] = ServerMessageType.SUBMISSIONS_SNAPSHOT
    room_code: str
    round: int
    submissions: list[SubmissionView]


class SubmissionReceivedMessage(BaseModel):
    """Live submission visibility, only emitted when the server opts in."""

    type: Literal[ServerMessageType.SUBMISSION_RECEIVED] = ServerMessageType.SUBMISSION_RECEIVED
    room_code: str
    round: int
    player_id: str
    answers: dict[str, str]


class AnswersAcceptedMessage(BaseModel):
    type: Literal[ServerMessageType.ANSWERS_ACCEPTED] = ServerMessageType.ANSWERS_ACCEPTED
    room_code: str
    round: int


class ScoresUpdateMessage(BaseModel):
    type: Literal[ServerMessageType.SCORES_UPDATE] = ServerMessageType.SCORES_UPDATE
    room_code: str
    round: int
    round_points: dict[str, int]
    breakdown: dict[str, dict[str, int]]
    totals: dict[str, int]


class RoundTickMessage(BaseModel):
    type: Literal[ServerMessageType.ROUND_TICK] = ServerMessageType.ROUND_TICK
    room_code: str
    round: int
    remaining_seconds: float


class ErrorMessage(BaseModel):
    type: Literal[ServerMessageType.ERROR] = ServerMessageType.ERROR
    code: ErrorCode
    message: str


class PongMessage(BaseModel):
    type: Literal[ServerMessageType.PONG] = ServerMessageType.PONG
