"""Typed domain exceptions for trivia session, leaderboard and payout rules.

All precondition failures use subclasses of TriviaError rather than raw
ValueError. They are raised before any state is written, so a caller that
catches them can assume the engine is unchanged.
"""


class TriviaError(Exception):
    """Base exception for trivia engine rule violations."""


class UnsupportedSettingsError(TriviaError):
    """Trivia settings contain values the engine cannot run with."""


class PlayerRuleError(TriviaError):
    """A per-player precondition failed.

    Attributes:
        player: Address of the player the operation targeted.

    """

    def __init__(self, message: str, *, player: str) -> None:
        self.player = player
        super().__init__(message)


class AlreadyActiveSessionError(PlayerRuleError):
    def __init__(self, *, player: str) -> None:
        super().__init__(f"player {player} already has an active session", player=player)


class CooldownNotElapsedError(PlayerRuleError):
    """Player already started a session in the current cooldown period.

    Attributes:
        next_period_start: Epoch seconds at which the player may start again.

    """

    def __init__(self, *, player: str, next_period_start: int) -> None:
        self.next_period_start = next_period_start
        super().__init__(
            f"player {player} must wait until {next_period_start} to start a new session",
            player=player,
        )


class NoActiveSessionError(PlayerRuleError):
    def __init__(self, *, player: str) -> None:
        super().__init__(f"player {player} has no active session", player=player)


class InsufficientEligibleQuestionsError(PlayerRuleError):
    """Fewer eligible questions exist than a session needs.

    Attributes:
        eligible: Number of eligible questions found (or selected so far).
        required: Configured batch size.

    """

    def __init__(self, *, player: str, eligible: int, required: int) -> None:
        self.eligible = eligible
        self.required = required
        super().__init__(
            f"player {player} has {eligible} eligible questions, {required} required",
            player=player,
        )


class SelectionExhaustedError(InsufficientEligibleQuestionsError):
    """Rejection sampling hit its attempt limit before filling the batch."""

    def __init__(self, *, player: str, eligible: int, required: int, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(player=player, eligible=eligible, required=required)
        self.args = (
            f"question selection for player {player} gave up after {attempts} draws "
            f"with {eligible}/{required} questions selected",
        )


class ReentrantOperationError(TriviaError):
    """A mutating operation was invoked while the same task already holds its lock.

    Attributes:
        key: Lock key of the player or week being mutated (e.g. "player:alice").
        operation: Name of the rejected operation.

    """

    def __init__(self, *, key: str, operation: str) -> None:
        self.key = key
        self.operation = operation
        super().__init__(f"re-entrant {operation} rejected for {key}")


class OperationsInFlightError(TriviaError):
    """An engine-wide operation was refused because other operations hold or await locks.

    Attributes:
        operation: Name of the rejected operation.
        keys: Lock keys that were busy at the time.

    """

    def __init__(self, *, operation: str, keys: list[str]) -> None:
        self.operation = operation
        self.keys = keys
        super().__init__(f"{operation} rejected while operations are in flight for {', '.join(keys)}")


class InvalidQuestionReferenceError(TriviaError):
    def __init__(self, *, question_id: int) -> None:
        self.question_id = question_id
        super().__init__(f"question {question_id} does not exist")


class WeekRuleError(TriviaError):
    """A per-week precondition failed.

    Attributes:
        week_number: The week the operation targeted.

    """

    def __init__(self, message: str, *, week_number: int) -> None:
        self.week_number = week_number
        super().__init__(message)


class WeekNotEndedError(WeekRuleError):
    def __init__(self, *, week_number: int, ends_at: int) -> None:
        self.ends_at = ends_at
        super().__init__(f"week {week_number} has not ended (ends at {ends_at})", week_number=week_number)


class NoLeaderboardForWeekError(WeekRuleError):
    def __init__(self, *, week_number: int) -> None:
        super().__init__(f"no leaderboard recorded for week {week_number}", week_number=week_number)


class AlreadyDistributedError(WeekRuleError):
    def __init__(self, *, week_number: int) -> None:
        super().__init__(f"rewards for week {week_number} were already distributed", week_number=week_number)


class ExternalPortFailureError(TriviaError):
    """An external port (randomness, question repository, ledger) failed.

    The original exception is chained as ``__cause__``.

    Attributes:
        port: Name of the port that failed ("randomness", "questions", "ledger").
        operation: Port method that raised.

    """

    def __init__(self, *, port: str, operation: str) -> None:
        self.port = port
        self.operation = operation
        super().__init__(f"{port} port failed during {operation}")
