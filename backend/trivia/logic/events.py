"""Domain events emitted by trivia operations.

Mutating operations return their events to the caller, which decides how to
publish them. All layers import event types from this module.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from trivia.logic.types import RewardPayout  # noqa: TC001


class EventType(StrEnum):
    """Types of trivia events."""

    SESSION_STARTED = "session_started"
    ANSWER_SUBMITTED = "answer_submitted"
    SESSION_ENDED = "session_ended"
    WEEKLY_REWARDS_DISTRIBUTED = "weekly_rewards_distributed"


class TriviaEvent(BaseModel):
    """Base class for all trivia domain events."""

    model_config = ConfigDict(frozen=True)

    type: EventType
    timestamp: int


class SessionStartedEvent(TriviaEvent):
    type: Literal[EventType.SESSION_STARTED] = EventType.SESSION_STARTED
    player: str
    question_ids: tuple[int, ...]


class AnswerSubmittedEvent(TriviaEvent):
    type: Literal[EventType.ANSWER_SUBMITTED] = EventType.ANSWER_SUBMITTED
    player: str
    question_id: int
    question_index: int
    is_correct: bool


class SessionEndedEvent(TriviaEvent):
    """Emitted once a session's last answer is in.

    ``week_score`` is the player's accumulated score for ``week_number``
    after this session; ``reward`` is the amount minted for this session.
    """

    type: Literal[EventType.SESSION_ENDED] = EventType.SESSION_ENDED
    player: str
    correct_count: int
    score: int
    week_number: int
    week_score: int
    reward: int


class WeeklyRewardsDistributedEvent(TriviaEvent):
    type: Literal[EventType.WEEKLY_REWARDS_DISTRIBUTED] = EventType.WEEKLY_REWARDS_DISTRIBUTED
    week_number: int
    payouts: list[RewardPayout] = Field(default_factory=list)

    @property
    def total_paid(self) -> int:
        return sum(payout.amount for payout in self.payouts)


SessionEvent = SessionStartedEvent | AnswerSubmittedEvent | SessionEndedEvent
