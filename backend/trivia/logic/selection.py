"""
Question selection for a new session.

Draws uniform indices over the whole question range from the randomness
port and keeps only eligible ones (active, not attempted by the player, not
already picked for this session) until the batch is full. Eligibility is
counted up front so a short question pool fails fast instead of spinning.
The draw loop is still capped by ``max_attempts`` because a repository whose
answers change between the count and the draws could otherwise stall it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from trivia.logic.exceptions import (
    ExternalPortFailureError,
    InsufficientEligibleQuestionsError,
    SelectionExhaustedError,
)
from trivia.logic.ports import call_port

if TYPE_CHECKING:
    from trivia.logic.ports import QuestionRepository, RandomnessSource

logger = structlog.get_logger()


async def _is_eligible(questions: QuestionRepository, player: str, question_id: int) -> bool:
    if not await call_port("questions", "is_active", questions.is_active(question_id)):
        return False
    return not await call_port("questions", "has_attempted", questions.has_attempted(player, question_id))


async def count_eligible_questions(questions: QuestionRepository, player: str) -> tuple[int, int]:
    """Return (total question count, number eligible for ``player``)."""
    total = await call_port("questions", "count", questions.count())
    eligible = 0
    for question_id in range(total):
        if await _is_eligible(questions, player, question_id):
            eligible += 1
    return total, eligible


async def select_questions(
    questions: QuestionRepository,
    randomness: RandomnessSource,
    player: str,
    batch_size: int,
    max_attempts: int,
) -> tuple[int, ...]:
    """
    Pick ``batch_size`` distinct eligible question ids by rejection sampling.

    Raises InsufficientEligibleQuestionsError before drawing when the pool is
    too small, and SelectionExhaustedError when ``max_attempts`` draws did not
    fill the batch.
    """
    total, eligible = await count_eligible_questions(questions, player)
    if eligible < batch_size:
        raise InsufficientEligibleQuestionsError(player=player, eligible=eligible, required=batch_size)

    selected: list[int] = []
    attempts = 0
    while len(selected) < batch_size:
        if attempts >= max_attempts:
            logger.warning(
                "question selection exhausted",
                player=player,
                attempts=attempts,
                selected=len(selected),
                required=batch_size,
            )
            raise SelectionExhaustedError(
                player=player,
                eligible=len(selected),
                required=batch_size,
                attempts=attempts,
            )
        attempts += 1
        candidate = await call_port("randomness", "draw", randomness.draw(0, total - 1))
        if not 0 <= candidate < total:
            logger.error("randomness draw out of range", candidate=candidate, maximum=total - 1)
            raise ExternalPortFailureError(port="randomness", operation="draw")
        if candidate in selected:
            continue
        if not await _is_eligible(questions, player, candidate):
            continue
        selected.append(candidate)

    logger.debug("questions selected", player=player, attempts=attempts, question_ids=selected)
    return tuple(selected)
