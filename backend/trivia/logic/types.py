"""
Pydantic models for trivia state.

All state models are frozen. Operations build updated copies with
``model_copy(update=...)`` and the owning store swaps them in only after
every external call of the operation has succeeded.
"""

from pydantic import BaseModel, ConfigDict, Field


class Session(BaseModel):
    """One play-through of a fixed question batch by one player."""

    model_config = ConfigDict(frozen=True)

    player: str
    question_sequence: tuple[int, ...]
    cursor: int = 0
    correct_count: int = 0
    started_at: int
    active: bool = True

    @property
    def is_complete(self) -> bool:
        return self.cursor >= len(self.question_sequence)

    @property
    def current_question_id(self) -> int:
        return self.question_sequence[self.cursor]


class PlayerRecord(BaseModel):
    """Lifetime and weekly counters for a player; survives across sessions."""

    model_config = ConfigDict(frozen=True)

    player: str
    last_played_period_start: int | None = None
    total_sessions: int = 0
    total_correct_answers: int = 0
    total_reward_earned: int = 0
    current_week_score: int = 0
    last_scored_week: int | None = None
    last_session: Session | None = None  # most recent completed session


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    player: str
    score: int


class WeeklyLeaderboard(BaseModel):
    """Top-K (player, score) pairs for one week, best first."""

    model_config = ConfigDict(frozen=True)

    week_number: int
    ranked_entries: tuple[LeaderboardEntry, ...] = ()
    rewards_distributed: bool = False


class PlayerStats(BaseModel):
    """Read-only view of a player returned to drivers.

    ``current_week_score`` is 0 when the player has not completed a session
    in the current week, even if the stored record still holds an older
    week's score.
    """

    model_config = ConfigDict(frozen=True)

    player: str
    total_sessions: int
    total_correct_answers: int
    total_reward_earned: int
    current_week_score: int
    has_active_session: bool
    seconds_until_next_session: int


class RewardPayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: int
    player: str
    amount: int


class EngineSnapshot(BaseModel):
    """Complete engine state for export and restore."""

    model_config = ConfigDict(frozen=True)

    sessions: list[Session] = Field(default_factory=list)
    players: list[PlayerRecord] = Field(default_factory=list)
    leaderboards: list[WeeklyLeaderboard] = Field(default_factory=list)
