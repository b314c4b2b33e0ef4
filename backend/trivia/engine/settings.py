"""Engine configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from shared.validators import IntListEnvSettingsSource, parse_int_list
from trivia.logic.settings import SECONDS_PER_DAY, SECONDS_PER_WEEK, TriviaSettings

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class TriviaEngineSettings(BaseSettings):
    model_config = {"env_prefix": "TRIVIA_"}

    batch_size: int = Field(default=3, ge=1)
    cooldown_seconds: int = Field(default=SECONDS_PER_DAY, ge=1)
    week_seconds: int = Field(default=SECONDS_PER_WEEK, ge=1)
    max_selection_attempts: int = Field(default=1000, ge=1)
    points_per_correct_answer: int = Field(default=100, ge=0)
    reward_per_correct_answer: int = Field(default=1, ge=0)
    weekly_reward_table: tuple[int, ...] = (100, 50, 25)

    random_seed: str | None = None  # hex seed for reproducible draws; random when unset
    log_dir: str | None = None
    snapshot_dir: str = Field(default="backend/data/snapshots", min_length=1)

    @field_validator("weekly_reward_table", mode="before")
    @classmethod
    def validate_weekly_reward_table(cls, v: str | list[int] | tuple[int, ...]) -> tuple[int, ...]:
        table = parse_int_list(v)
        if any(amount < 0 for amount in table):
            raise ValueError("weekly_reward_table amounts must not be negative")
        return table

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, IntListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings

    def to_trivia_settings(self) -> TriviaSettings:
        return TriviaSettings(
            batch_size=self.batch_size,
            cooldown_seconds=self.cooldown_seconds,
            week_seconds=self.week_seconds,
            max_selection_attempts=self.max_selection_attempts,
            points_per_correct_answer=self.points_per_correct_answer,
            reward_per_correct_answer=self.reward_per_correct_answer,
            weekly_reward_table=self.weekly_reward_table,
        )
