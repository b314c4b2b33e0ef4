"""Centralized trivia rules - session size, scoring, payouts and time windows."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from trivia.logic.exceptions import UnsupportedSettingsError

SECONDS_PER_DAY = 86_400
SECONDS_PER_WEEK = 7 * SECONDS_PER_DAY


class TriviaSettings(BaseModel):
    """
    Configuration for all trivia game rules.

    Defaults describe a daily three-question session with a three-place
    weekly leaderboard.
    """

    model_config = ConfigDict(frozen=True)

    # --- Session ---
    batch_size: int = 3
    cooldown_seconds: int = SECONDS_PER_DAY
    max_selection_attempts: int = 1000

    # --- Scoring ---
    points_per_correct_answer: int = 100
    reward_per_correct_answer: int = 1

    # --- Weekly Leaderboard ---
    week_seconds: int = SECONDS_PER_WEEK
    weekly_reward_table: tuple[int, ...] = (100, 50, 25)

    @property
    def leaderboard_size(self) -> int:
        """K, the number of ranked slots per week."""
        return len(self.weekly_reward_table)


def validate_settings(settings: TriviaSettings) -> None:
    """Validate that all settings values can be run by the engine.

    Raises UnsupportedSettingsError listing every offending value.
    """
    errors: list[str] = []

    if settings.batch_size < 1:
        errors.append(f"batch_size={settings.batch_size} must be at least 1")

    if settings.cooldown_seconds < 1:
        errors.append(f"cooldown_seconds={settings.cooldown_seconds} must be positive")

    if settings.week_seconds < 1:
        errors.append(f"week_seconds={settings.week_seconds} must be positive")

    if settings.max_selection_attempts < settings.batch_size:
        errors.append(
            f"max_selection_attempts={settings.max_selection_attempts} is below batch_size={settings.batch_size}"
        )

    if settings.points_per_correct_answer < 0:
        errors.append("points_per_correct_answer must not be negative")

    if settings.reward_per_correct_answer < 0:
        errors.append("reward_per_correct_answer must not be negative")

    if not settings.weekly_reward_table:
        errors.append("weekly_reward_table must have at least one rank")
    elif any(amount < 0 for amount in settings.weekly_reward_table):
        errors.append("weekly_reward_table amounts must not be negative")

    if errors:
        raise UnsupportedSettingsError("; ".join(errors))
