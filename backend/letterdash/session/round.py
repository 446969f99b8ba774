"""
Round state machine: lobby -> playing -> review -> lobby.

Every transition validates first and mutates only after all checks pass, so a
rejected request leaves the room exactly as it was. Rule violations raise
GameRuleError subclasses; closing a round is idempotent and never raises.

These functions do not touch timers or connections. SessionManager arms the
round timer in the same synchronous step as start_round and cancels it when
close_round reports a close.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from letterdash.logic.enums import RoomStatus
from letterdash.logic.exceptions import (
    InvalidInputError,
    NotHostError,
    NotInReviewError,
    NotPlayingError,
    RoundInProgressError,
)
from letterdash.logic.letters import draw_letter
from letterdash.logic.scoring import score_round
from letterdash.logic.settings import MAX_ANSWER_LENGTH

if TYPE_CHECKING:
    import random
    from collections.abc import Mapping

    from letterdash.logic.scoring import RoundResult, ScoringPolicy
    from letterdash.logic.settings import GameSettings
    from letterdash.session.room import Room


def clamp_duration(value: int | None, settings: GameSettings) -> int:
    """Round duration in seconds: the default when unset, else clamped to the bounds."""
    if value is None:
        return settings.default_duration_seconds
    return max(settings.min_duration_seconds, min(settings.max_duration_seconds, value))


def coerce_answers(answers: Mapping[str, object], categories: tuple[str, ...]) -> dict[str, str]:
    """Keep one string per category: unknown labels dropped, malformed values blanked."""
    coerced: dict[str, str] = {}
    for category in categories:
        value = answers.get(category, "")
        coerced[category] = value.strip()[:MAX_ANSWER_LENGTH] if isinstance(value, str) else ""
    return coerced


def _require_host(room: Room, connection_id: str) -> None:
    if room.host_connection_id != connection_id:
        raise NotHostError("Only the host can do that")


def start_round(
    room: Room,
    connection_id: str,
    settings: GameSettings,
    *,
    duration_seconds: int | None = None,
    now: float | None = None,
    rng: random.Random | None = None,
) -> None:
    """Open a new round. Host only; allowed from lobby or review."""
    _require_host(room, connection_id)
    if room.status == RoomStatus.PLAYING:
        raise RoundInProgressError("A round is already in progress")

    duration = clamp_duration(duration_seconds, settings)
    started_at = time.time() if now is None else now

    room.submissions.clear()
    room.last_result = None
    room.round += 1
    room.letter = draw_letter(room.language, rng)
    room.duration_seconds = duration
    room.deadline = started_at + duration
    room.status = RoomStatus.PLAYING


def submit_answers(room: Room, connection_id: str, answers: Mapping[str, object]) -> bool:
    """Store (or replace) a player's answers for the running round.

    Return True when every player in the room has now submitted.
    """
    if connection_id not in room.players or room.status != RoomStatus.PLAYING:
        raise NotPlayingError("No round is accepting answers")
    room.submissions[connection_id] = coerce_answers(answers, room.categories)
    return room.all_submitted


def close_round(
    room: Room,
    policy: ScoringPolicy,
    *,
    expected_round: int | None = None,
) -> RoundResult | None:
    """Score the running round and move to review.

    Return None without touching the room when it is not playing or when
    expected_round names an earlier round (a stale timer fire).
    """
    if room.status != RoomStatus.PLAYING:
        return None
    if expected_round is not None and expected_round != room.round:
        return None

    result = score_round(room.submissions, room.categories, policy)
    for player_id, points in result.round_points.items():
        room.total_scores[player_id] = room.total_scores.get(player_id, 0) + points

    room.last_result = result
    room.deadline = None
    room.status = RoomStatus.REVIEW
    return result


def advance_round(room: Room, connection_id: str) -> None:
    """Return a reviewed room to the lobby. Host only."""
    _require_host(room, connection_id)
    if room.status != RoomStatus.REVIEW:
        raise NotInReviewError("There is no closed round to leave")
    room.status = RoomStatus.LOBBY


def award_points(
    room: Room,
    connection_id: str,
    player_id: str,
    points: int,
    settings: GameSettings,
) -> RoundResult:
    """Add a host-judged bonus to a present player's round and total points."""
    _require_host(room, connection_id)
    if room.status != RoomStatus.REVIEW or room.last_result is None:
        raise NotInReviewError("Points can only be awarded while reviewing a round")
    if player_id not in room.players:
        raise InvalidInputError("Unknown player")
    if not 0 <= points <= settings.max_award_points:
        raise InvalidInputError(f"Points must be between 0 and {settings.max_award_points}")

    room.last_result = room.last_result.with_bonus(player_id, points)
    room.total_scores[player_id] = room.total_scores.get(player_id, 0) + points
    return room.last_result
