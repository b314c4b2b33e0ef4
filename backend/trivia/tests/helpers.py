from __future__ import annotations

from typing import TYPE_CHECKING

from trivia.logic.settings import SECONDS_PER_WEEK
from trivia.memory.question_bank import InMemoryQuestionBank

if TYPE_CHECKING:
    from trivia.engine.app import TriviaEngine
    from trivia.logic.events import SessionEvent

# a fixed seed for deterministic draws (64 hex chars = 32 bytes)
FIXED_SEED = "ab" * 32

# one hour into week 2900, so a full day fits before the week ends
TEST_WEEK = 2900
TEST_START = TEST_WEEK * SECONDS_PER_WEEK + 3600


def answer_for(question_id: int) -> str:
    return f"answer {question_id}"


def fill_bank(bank: InMemoryQuestionBank, count: int) -> InMemoryQuestionBank:
    """Add ``count`` questions whose answers are ``answer_for(id)``."""
    for i in range(count):
        bank.add_question(f"Question {i}?", answer_for(i))
    return bank


def make_bank(count: int = 10) -> InMemoryQuestionBank:
    return fill_bank(InMemoryQuestionBank(), count)


async def play_session(engine: TriviaEngine, player: str, correct: int | None = None) -> list[SessionEvent]:
    """Start a session and answer every question; the first ``correct`` answers are right (all by default)."""
    await engine.start_session(player)
    batch_size = engine.settings.batch_size
    if correct is None:
        correct = batch_size
    events: list[SessionEvent] = []
    for index in range(batch_size):
        question_id = engine.current_question(player)
        answer = answer_for(question_id) if index < correct else "wrong"
        events.extend(await engine.submit_answer(player, answer))
    return events
