"""Room and round rules shared by every room of a server process."""

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from letterdash.logic.enums import Language
from letterdash.logic.scoring import ScoringPolicy

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "name",
    "family",
    "city",
    "country",
    "animal",
    "food",
    "fruit",
    "object",
    "color",
    "job",
)

MAX_PLAYER_NAME_LENGTH = 20
MAX_ANSWER_LENGTH = 64


class GameSettings(BaseModel):
    """Configurable game rules.

    retain_scores_on_leave keeps a departed player's total frozen in the room
    totals; when False the entry is dropped on departure.
    live_submissions publishes each submission's answers to the room while the
    round is still running (as a separate event).
    """

    model_config = ConfigDict(frozen=True)

    default_duration_seconds: int = Field(default=120, ge=1)
    min_duration_seconds: int = Field(default=10, ge=1)
    max_duration_seconds: int = Field(default=600, ge=1)
    default_language: Language = Language.PERSIAN
    categories: tuple[str, ...] = Field(default=DEFAULT_CATEGORIES, min_length=1)
    scoring: ScoringPolicy = Field(default_factory=ScoringPolicy)
    retain_scores_on_leave: bool = True
    live_submissions: bool = False
    tick_interval_seconds: float = Field(default=0, ge=0)
    max_award_points: int = Field(default=20, ge=0)

    @model_validator(mode="after")
    def _validate_rules(self) -> Self:
        if self.min_duration_seconds > self.max_duration_seconds:
            raise ValueError("min_duration_seconds must not exceed max_duration_seconds")
        if not self.min_duration_seconds <= self.default_duration_seconds <= self.max_duration_seconds:
            raise ValueError("default_duration_seconds must lie within the duration bounds")
        if any(not category.strip() for category in self.categories):
            raise ValueError("categories must not be blank")
        if len(set(self.categories)) != len(self.categories):
            raise ValueError("categories must be unique")
        return self
