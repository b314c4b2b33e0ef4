from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from trivia.logic.exceptions import ExternalPortFailureError, TriviaError

if TYPE_CHECKING:
    from collections.abc import Awaitable


class RandomnessSource(ABC):
    """Abstract interface for uniform random integer draws."""

    @abstractmethod
    async def draw(self, minimum: int, maximum: int) -> int:
        """Return a uniformly distributed integer in [minimum, maximum]."""
        ...


class QuestionRepository(ABC):
    """
    Abstract interface for the question store and answer oracle.

    Question ids are the integers 0..count()-1.
    """

    @abstractmethod
    async def count(self) -> int:
        """Return the total number of questions, active or not."""
        ...

    @abstractmethod
    async def is_active(self, question_id: int) -> bool: ...

    @abstractmethod
    async def has_attempted(self, player: str, question_id: int) -> bool: ...

    @abstractmethod
    async def verify(self, question_id: int, answer: str, proof: str | None) -> bool:
        """
        Check an answer for a question.

        Raises InvalidQuestionReferenceError when question_id does not exist.
        """
        ...

    @abstractmethod
    async def record_attempt(self, player: str, question_id: int) -> None:
        """Mark a question as attempted by a player. Repeated calls are no-ops."""
        ...


class RewardLedger(ABC):
    """Abstract interface for the token ledger."""

    @abstractmethod
    async def mint(self, address: str, amount: int) -> None:
        """Credit ``amount`` tokens to ``address``. Failures are fatal to the caller."""
        ...


async def call_port(port: str, operation: str, call: Awaitable[Any]) -> Any:  # noqa: ANN401
    """Await a port call, wrapping foreign exceptions in ExternalPortFailureError.

    Engine errors raised by a port (e.g. InvalidQuestionReferenceError) pass
    through unchanged.
    """
    try:
        return await call
    except TriviaError:
        raise
    except Exception as e:
        raise ExternalPortFailureError(port=port, operation=operation) from e
