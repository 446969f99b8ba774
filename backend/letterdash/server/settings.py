"""Game server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from letterdash.logic.enums import Language
from letterdash.logic.scoring import ScoringPolicy
from letterdash.logic.settings import DEFAULT_CATEGORIES, GameSettings
from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class GameServerSettings(BaseSettings):
    model_config = {"env_prefix": "LETTERDASH_"}

    max_rooms: int = Field(default=500, ge=1)
    log_dir: str = Field(default="backend/logs/letterdash", min_length=1)
    cors_origins: list[str] = ["http://localhost:5173"]

    # Game rules, flattened so each one maps to a single env var.
    default_duration_seconds: int = Field(default=120, ge=1)
    min_duration_seconds: int = Field(default=10, ge=1)
    max_duration_seconds: int = Field(default=600, ge=1)
    default_language: Language = Language.PERSIAN
    categories: list[str] = list(DEFAULT_CATEGORIES)
    unique_points: int = Field(default=20, ge=0)
    shared_points: int = Field(default=10, ge=0)
    crowded_points: int | None = Field(default=None, ge=0)
    crowded_threshold: int = Field(default=3, ge=3)
    retain_scores_on_leave: bool = True
    live_submissions: bool = False
    tick_interval_seconds: float = Field(default=0, ge=0)
    max_award_points: int = Field(default=20, ge=0)

    @field_validator("cors_origins", "categories", mode="before")
    @classmethod
    def validate_string_lists(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

    def game_settings(self) -> GameSettings:
        """Build the immutable rule set shared by every room."""
        return GameSettings(
            default_duration_seconds=self.default_duration_seconds,
            min_duration_seconds=self.min_duration_seconds,
            max_duration_seconds=self.max_duration_seconds,
            default_language=self.default_language,
            categories=tuple(self.categories),
            scoring=ScoringPolicy(
                unique_points=self.unique_points,
                shared_points=self.shared_points,
                crowded_points=self.crowded_points,
                crowded_threshold=self.crowded_threshold,
            ),
            retain_scores_on_leave=self.retain_scores_on_leave,
            live_submissions=self.live_submissions,
            tick_interval_seconds=self.tick_interval_seconds,
            max_award_points=self.max_award_points,
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
