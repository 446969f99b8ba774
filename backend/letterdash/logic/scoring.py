"""
Uniqueness scoring for one round of category answers.

Each category is scored independently: answers are normalized, identical
normalized answers are counted, and every non-empty answer earns points by how
many players gave it. Category points are then summed per player.

The functions in this module are pure: no I/O, no mutation of their inputs,
and the result does not depend on the iteration order of players or
categories.
"""

from __future__ import annotations

import re
import unicodedata
from collections import Counter
from typing import TYPE_CHECKING, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

_WHITESPACE_RUN = re.compile(r"\s+")


class ScoringPolicy(BaseModel):
    """Point schedule by number of players sharing a normalized answer.

    crowded_points is the reduced award for answers given by at least
    crowded_threshold players; None scores them like any shared answer.
    """

    model_config = ConfigDict(frozen=True)

    unique_points: int = Field(default=20, ge=0)
    shared_points: int = Field(default=10, ge=0)
    crowded_points: int | None = Field(default=None, ge=0)
    crowded_threshold: int = Field(default=3, ge=3)

    @model_validator(mode="after")
    def _validate_tiers(self) -> Self:
        if self.shared_points > self.unique_points:
            raise ValueError("shared_points must not exceed unique_points")
        if self.crowded_points is not None and self.crowded_points > self.shared_points:
            raise ValueError("crowded_points must not exceed shared_points")
        return self

    def points_for(self, occurrences: int) -> int:
        """Points for one answer given by `occurrences` players in a category."""
        if occurrences <= 0:
            return 0
        if occurrences == 1:
            return self.unique_points
        if self.crowded_points is not None and occurrences >= self.crowded_threshold:
            return self.crowded_points
        return self.shared_points


class RoundResult(BaseModel):
    """Points of a closed round.

    round_points includes any bonus the host awarded during review;
    breakdown holds the automatic per-category points only.
    """

    model_config = ConfigDict(frozen=True)

    round_points: dict[str, int]
    breakdown: dict[str, dict[str, int]]
    bonus_points: dict[str, int] = Field(default_factory=dict)

    def with_bonus(self, player_id: str, points: int) -> RoundResult:
        """Return a copy with `points` added to the player's round and bonus points."""
        round_points = dict(self.round_points)
        bonus_points = dict(self.bonus_points)
        round_points[player_id] = round_points.get(player_id, 0) + points
        bonus_points[player_id] = bonus_points.get(player_id, 0) + points
        return self.model_copy(update={"round_points": round_points, "bonus_points": bonus_points})


def normalize_answer(raw: object) -> str:
    """Normalize an answer for comparison.

    Non-string input is treated as no answer. Strings are NFKC-normalized,
    trimmed, have inner whitespace runs collapsed and are case-folded.
    """
    if not isinstance(raw, str):
        return ""
    text = unicodedata.normalize("NFKC", raw)
    return _WHITESPACE_RUN.sub(" ", text).strip().casefold()


def score_category(
    answers: Mapping[str, object],
    policy: ScoringPolicy,
) -> dict[str, int]:
    """Score one category. `answers` maps player id to that player's raw answer."""
    normalized = {player_id: normalize_answer(raw) for player_id, raw in answers.items()}
    occurrences = Counter(answer for answer in normalized.values() if answer)
    return {
        player_id: policy.points_for(occurrences[answer]) if answer else 0
        for player_id, answer in normalized.items()
    }


def score_round(
    submissions: Mapping[str, Mapping[str, object]],
    categories: Sequence[str],
    policy: ScoringPolicy | None = None,
) -> RoundResult:
    """Turn a round's submissions into per-player points.

    Every player present in `submissions` gets an entry (possibly 0). Answers
    for labels outside `categories` are ignored.
    """
    policy = policy or ScoringPolicy()
    breakdown: dict[str, dict[str, int]] = {player_id: {} for player_id in submissions}

    for category in dict.fromkeys(categories):
        category_points = score_category(
            {player_id: answers.get(category, "") for player_id, answers in submissions.items()},
            policy,
        )
        for player_id, points in category_points.items():
            breakdown[player_id][category] = points

    round_points = {player_id: sum(points.values()) for player_id, points in breakdown.items()}
    return RoundResult(round_points=round_points, breakdown=breakdown)
