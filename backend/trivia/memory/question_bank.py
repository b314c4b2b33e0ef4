"""In-memory question repository.

Answers are stored only as SHA-256 digests of their normalized form, so a
snapshot of the bank does not reveal them. Normalization folds case and
collapses whitespace: "  Mount  Everest " matches "mount everest".
"""

import hashlib

from pydantic import BaseModel, ConfigDict

from trivia.logic.exceptions import InvalidQuestionReferenceError
from trivia.logic.ports import QuestionRepository


def normalize_answer(answer: str) -> str:
    return " ".join(answer.split()).casefold()


def answer_digest(answer: str) -> str:
    return hashlib.sha256(normalize_answer(answer).encode("utf-8")).hexdigest()


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: int
    prompt: str
    answer_digest: str
    active: bool = True


class InMemoryQuestionBank(QuestionRepository):
    def __init__(self) -> None:
        self._questions: list[Question] = []
        self._attempts: dict[str, set[int]] = {}  # player -> attempted question ids

    def add_question(self, prompt: str, answer: str, *, active: bool = True) -> int:
        """Store a question and return its id."""
        question_id = len(self._questions)
        self._questions.append(
            Question(question_id=question_id, prompt=prompt, answer_digest=answer_digest(answer), active=active)
        )
        return question_id

    def get_question(self, question_id: int) -> Question:
        if not 0 <= question_id < len(self._questions):
            raise InvalidQuestionReferenceError(question_id=question_id)
        return self._questions[question_id]

    def set_active(self, question_id: int, *, active: bool) -> None:
        question = self.get_question(question_id)
        self._questions[question_id] = question.model_copy(update={"active": active})

    def attempted_by(self, player: str) -> set[int]:
        return set(self._attempts.get(player, set()))

    async def count(self) -> int:
        return len(self._questions)

    async def is_active(self, question_id: int) -> bool:
        return self.get_question(question_id).active

    async def has_attempted(self, player: str, question_id: int) -> bool:
        return question_id in self._attempts.get(player, set())

    async def verify(self, question_id: int, answer: str, proof: str | None) -> bool:  # noqa: ARG002
        return self.get_question(question_id).answer_digest == answer_digest(answer)

    async def record_attempt(self, player: str, question_id: int) -> None:
        self.get_question(question_id)
        self._attempts.setdefault(player, set()).add(question_id)
