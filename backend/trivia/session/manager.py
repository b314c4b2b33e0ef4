from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from trivia.logic.events import AnswerSubmittedEvent, SessionEndedEvent, SessionStartedEvent
from trivia.logic.exceptions import AlreadyActiveSessionError, CooldownNotElapsedError, NoActiveSessionError
from trivia.logic.periods import cooldown_period_start, next_cooldown_period_start, week_number
from trivia.logic.ports import call_port
from trivia.logic.selection import select_questions
from trivia.logic.types import PlayerRecord, PlayerStats, Session
from trivia.session.guard import OperationGuard, player_key, week_key
from trivia.session.player_store import PlayerStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from trivia.logic.events import SessionEvent
    from trivia.logic.leaderboard import LeaderboardBook
    from trivia.logic.ports import QuestionRepository, RandomnessSource, RewardLedger
    from trivia.logic.settings import TriviaSettings

logger = structlog.get_logger()


class SessionManager:
    """Drive each player's NoSession -> Active -> NoSession lifecycle.

    Every mutating call holds the player's lock for its whole duration,
    awaits all port calls first, and writes the session, the player record
    and (on completion) the weekly leaderboard only after the last port call
    returned. A port failure therefore leaves the player exactly as before
    the call.
    """

    def __init__(
        self,
        settings: TriviaSettings,
        questions: QuestionRepository,
        randomness: RandomnessSource,
        ledger: RewardLedger,
        leaderboards: LeaderboardBook,
        clock: Callable[[], int],
        players: PlayerStore | None = None,
        guard: OperationGuard | None = None,
    ) -> None:
        self._settings = settings
        self._questions = questions
        self._randomness = randomness
        self._ledger = ledger
        self._leaderboards = leaderboards
        self._clock = clock
        self._players = players if players is not None else PlayerStore()
        self._guard = guard if guard is not None else OperationGuard()

    @property
    def players(self) -> PlayerStore:
        return self._players

    def _require_session(self, player: str) -> Session:
        session = self._players.get_session(player)
        if session is None or not session.active:
            raise NoActiveSessionError(player=player)
        return session

    def _check_cooldown(self, record: PlayerRecord, now: int) -> int:
        """Return the current cooldown period start, or raise if the player already used it."""
        period_start = cooldown_period_start(now, self._settings.cooldown_seconds)
        last = record.last_played_period_start
        if last is not None and last >= period_start:
            raise CooldownNotElapsedError(
                player=record.player,
                next_period_start=next_cooldown_period_start(now, self._settings.cooldown_seconds),
            )
        return period_start

    async def start_session(self, player: str) -> SessionStartedEvent:
        """Open a new session with a freshly drawn question batch."""
        async with self._guard.hold(player_key(player), "start_session"):
            with structlog.contextvars.bound_contextvars(player=player):
                now = self._clock()
                if self._players.has_active_session(player):
                    raise AlreadyActiveSessionError(player=player)
                record = self._players.get_record(player)
                period_start = self._check_cooldown(record, now)

                question_ids = await select_questions(
                    self._questions,
                    self._randomness,
                    player,
                    self._settings.batch_size,
                    self._settings.max_selection_attempts,
                )

                self._players.put_session(Session(player=player, question_sequence=question_ids, started_at=now))
                self._players.update_record(
                    player,
                    last_played_period_start=period_start,
                    total_sessions=record.total_sessions + 1,
                )
                logger.info("session started", question_ids=list(question_ids))
                return SessionStartedEvent(timestamp=now, player=player, question_ids=question_ids)

    def current_question(self, player: str) -> int:
        """Return the id of the question the player must answer next."""
        return self._require_session(player).current_question_id

    async def submit_answer(self, player: str, answer: str, proof: str | None = None) -> list[SessionEvent]:
        """
        Answer the current question and advance the session.

        Returns an AnswerSubmittedEvent, followed by a SessionEndedEvent when
        this was the last question of the batch.
        """
        async with self._guard.hold(player_key(player), "submit_answer"):
            with structlog.contextvars.bound_contextvars(player=player):
                now = self._clock()
                session = self._require_session(player)
                question_id = session.current_question_id
                question_index = session.cursor

                is_correct = await call_port(
                    "questions",
                    "verify",
                    self._questions.verify(question_id, answer, proof),
                )
                await call_port("questions", "record_attempt", self._questions.record_attempt(player, question_id))

                advanced = session.model_copy(
                    update={
                        "cursor": session.cursor + 1,
                        "correct_count": session.correct_count + int(is_correct),
                    }
                )
                record = self._players.get_record(player)
                record_changes: dict[str, Any] = {
                    "total_correct_answers": record.total_correct_answers + int(is_correct),
                }
                events: list[SessionEvent] = [
                    AnswerSubmittedEvent(
                        timestamp=now,
                        player=player,
                        question_id=question_id,
                        question_index=question_index,
                        is_correct=is_correct,
                    )
                ]

                if not advanced.is_complete:
                    self._players.put_session(advanced)
                    self._players.update_record(player, **record_changes)
                    logger.debug("answer submitted", question_id=question_id, is_correct=is_correct)
                    return events

                events.append(await self._complete_session(advanced, record, record_changes, now))
                return events

    async def _complete_session(
        self,
        session: Session,
        record: PlayerRecord,
        record_changes: dict[str, Any],
        now: int,
    ) -> SessionEndedEvent:
        """
        Score a finished session, rank it, and pay the per-answer reward.

        Must be called under the player's lock. Takes the week's lock so the
        leaderboard cannot change between ranking the score and storing it.
        """
        week = week_number(now, self._settings.week_seconds)
        score = session.correct_count * self._settings.points_per_correct_answer
        reward = session.correct_count * self._settings.reward_per_correct_answer

        # a new week starts the weekly score from zero
        last_week = record.last_scored_week
        if last_week is None or week > last_week:
            week_score = score
            scored_week = week
        else:
            week_score = record.current_week_score + score
            scored_week = last_week

        async with self._guard.hold(week_key(week), "record_score"):
            board = self._leaderboards.propose(session.player, week, week_score)
            if reward > 0:
                await call_port("ledger", "mint", self._ledger.mint(session.player, reward))

            self._leaderboards.commit(board)
            self._players.remove_session(session.player)
            self._players.update_record(
                session.player,
                reward_delta=reward,
                current_week_score=week_score,
                last_scored_week=scored_week,
                last_session=session.model_copy(update={"active": False}),
                **record_changes,
            )

        logger.info(
            "session ended",
            correct_count=session.correct_count,
            score=score,
            week=week,
            week_score=week_score,
            reward=reward,
        )
        return SessionEndedEvent(
            timestamp=now,
            player=session.player,
            correct_count=session.correct_count,
            score=score,
            week_number=week,
            week_score=week_score,
            reward=reward,
        )

    def has_active_session(self, player: str) -> bool:
        return self._players.has_active_session(player)

    def seconds_until_next_session(self, player: str) -> int:
        """Seconds until the player's cooldown ends; 0 when they may start now."""
        now = self._clock()
        record = self._players.get_record(player)
        last = record.last_played_period_start
        if last is None or last < cooldown_period_start(now, self._settings.cooldown_seconds):
            return 0
        return next_cooldown_period_start(now, self._settings.cooldown_seconds) - now

    def get_player_stats(self, player: str) -> PlayerStats:
        record = self._players.get_record(player)
        current_week = week_number(self._clock(), self._settings.week_seconds)
        week_score = record.current_week_score if record.last_scored_week == current_week else 0
        return PlayerStats(
            player=player,
            total_sessions=record.total_sessions,
            total_correct_answers=record.total_correct_answers,
            total_reward_earned=record.total_reward_earned,
            current_week_score=week_score,
            has_active_session=self._players.has_active_session(player),
            seconds_until_next_session=self.seconds_until_next_session(player),
        )
