from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from trivia.engine.settings import TriviaEngineSettings
from trivia.logic.exceptions import OperationsInFlightError
from trivia.logic.leaderboard import LeaderboardBook
from trivia.logic.periods import week_number
from trivia.logic.rng import PcgRandomness
from trivia.logic.settings import validate_settings
from trivia.logic.types import EngineSnapshot
from trivia.memory.ledger import InMemoryRewardLedger
from trivia.memory.question_bank import InMemoryQuestionBank
from trivia.session.guard import OperationGuard, week_key
from trivia.session.manager import SessionManager
from trivia.session.player_store import PlayerStore
from trivia.session.rewards import RewardDistributor

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from shared.storage import SnapshotStorage
    from trivia.logic.events import SessionEvent, SessionStartedEvent, WeeklyRewardsDistributedEvent
    from trivia.logic.ports import QuestionRepository, RandomnessSource, RewardLedger
    from trivia.logic.settings import TriviaSettings
    from trivia.logic.types import PlayerStats, WeeklyLeaderboard

logger = structlog.get_logger()


def system_clock() -> int:
    return int(time.time())


class TriviaEngine:
    """Driver-facing entry point bundling the session manager, leaderboards and payouts.

    All components share one PlayerStore, one LeaderboardBook and one
    OperationGuard, so every operation sees the same per-player and per-week
    serialization.
    """

    def __init__(
        self,
        settings: TriviaSettings,
        questions: QuestionRepository,
        randomness: RandomnessSource,
        ledger: RewardLedger,
        clock: Callable[[], int] = system_clock,
    ) -> None:
        validate_settings(settings)
        self.settings = settings
        self.questions = questions
        self.randomness = randomness
        self.ledger = ledger
        self._clock = clock
        self._guard = OperationGuard()
        self._players = PlayerStore()
        self.leaderboards = LeaderboardBook(capacity=settings.leaderboard_size)
        self.sessions = SessionManager(
            settings,
            questions,
            randomness,
            ledger,
            self.leaderboards,
            clock,
            players=self._players,
            guard=self._guard,
        )
        self.distributor = RewardDistributor(settings, self.leaderboards, self._players, ledger, self._guard, clock)

    @property
    def current_week(self) -> int:
        return week_number(self._clock(), self.settings.week_seconds)

    # --- Session operations ---

    async def start_session(self, player: str) -> SessionStartedEvent:
        return await self.sessions.start_session(player)

    def current_question(self, player: str) -> int:
        return self.sessions.current_question(player)

    async def submit_answer(self, player: str, answer: str, proof: str | None = None) -> list[SessionEvent]:
        return await self.sessions.submit_answer(player, answer, proof)

    # --- Leaderboard and rewards ---

    async def record_score(self, player: str, week: int, score: int) -> WeeklyLeaderboard:
        """Rank a score directly, outside a session (admin corrections, imports)."""
        async with self._guard.hold(week_key(week), "record_score"):
            return self.leaderboards.record_score(player, week, score)

    async def distribute_weekly_rewards(self, week: int) -> WeeklyRewardsDistributedEvent:
        return await self.distributor.distribute_weekly_rewards(week)

    # --- Read accessors ---

    def get_player_stats(self, player: str) -> PlayerStats:
        return self.sessions.get_player_stats(player)

    def seconds_until_next_session(self, player: str) -> int:
        return self.sessions.seconds_until_next_session(player)

    def get_leaderboard(self, week: int | None = None) -> WeeklyLeaderboard:
        """Return the week's board (current week by default); empty if nobody scored yet."""
        if week is None:
            week = self.current_week
        return self.leaderboards.snapshot(week)

    # --- Snapshots ---

    def export_snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            sessions=self._players.sessions,
            players=self._players.records,
            leaderboards=[self.leaderboards.snapshot(week) for week in self.leaderboards.weeks()],
        )

    def restore_snapshot(self, snapshot: EngineSnapshot) -> None:
        """Replace all engine state. Refused while any operation holds or awaits a lock."""
        busy = self._guard.active_keys
        if busy:
            raise OperationsInFlightError(operation="restore_snapshot", keys=busy)
        self._players.restore(snapshot.sessions, snapshot.players)
        self.leaderboards.restore(snapshot.leaderboards)
        logger.info(
            "snapshot restored",
            players=len(snapshot.players),
            sessions=len(snapshot.sessions),
            weeks=len(snapshot.leaderboards),
        )

    def save_snapshot(self, storage: SnapshotStorage, name: str) -> Path:
        return storage.save_snapshot(name, self.export_snapshot().model_dump_json())

    def load_snapshot(self, storage: SnapshotStorage, name: str) -> bool:
        """Restore from storage. Returns False when no snapshot with that name exists."""
        content = storage.load_snapshot(name)
        if content is None:
            return False
        self.restore_snapshot(EngineSnapshot.model_validate_json(content))
        return True


def create_engine(
    settings: TriviaEngineSettings | None = None,
    questions: QuestionRepository | None = None,
    randomness: RandomnessSource | None = None,
    ledger: RewardLedger | None = None,
    clock: Callable[[], int] = system_clock,
) -> TriviaEngine:
    """Build an engine, filling in in-memory adapters for any port not supplied."""
    if settings is None:  # pragma: no cover
        settings = TriviaEngineSettings()

    if questions is None:
        questions = InMemoryQuestionBank()

    if randomness is None:
        randomness = PcgRandomness(settings.random_seed)

    if ledger is None:
        ledger = InMemoryRewardLedger()

    engine = TriviaEngine(settings.to_trivia_settings(), questions, randomness, ledger, clock)
    logger.info(
        "trivia engine ready",
        batch_size=settings.batch_size,
        leaderboard_size=len(settings.weekly_reward_table),
    )
    return engine
