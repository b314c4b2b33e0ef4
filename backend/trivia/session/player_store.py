from typing import Any

from trivia.logic.types import PlayerRecord, Session


class PlayerStore:
    """In-memory store for live sessions and player records.

    Map player addresses to their single live Session (if any) and to their
    PlayerRecord. Records are created on first access and never removed.
    Writes replace whole frozen models; callers compute the replacement
    first and write it only once the operation can no longer fail.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}  # player -> live session
        self._records: dict[str, PlayerRecord] = {}  # player -> record

    def get_session(self, player: str) -> Session | None:
        return self._sessions.get(player)

    def has_active_session(self, player: str) -> bool:
        session = self._sessions.get(player)
        return session is not None and session.active

    def put_session(self, session: Session) -> None:
        self._sessions[session.player] = session

    def remove_session(self, player: str) -> None:
        self._sessions.pop(player, None)

    def get_record(self, player: str) -> PlayerRecord:
        """Return the player's record, or a fresh zeroed record if they never played."""
        return self._records.get(player) or PlayerRecord(player=player)

    def update_record(self, player: str, *, reward_delta: int = 0, **changes: Any) -> PlayerRecord:  # noqa: ANN401
        """Apply ``changes`` to the latest record and add ``reward_delta`` to its reward total.

        The reward total is applied as a delta because weekly payouts credit
        it without holding the player's lock.
        """
        record = self.get_record(player)
        if reward_delta:
            changes["total_reward_earned"] = record.total_reward_earned + reward_delta
        updated = record.model_copy(update=changes)
        self._records[player] = updated
        return updated

    def credit_reward(self, player: str, amount: int) -> PlayerRecord:
        return self.update_record(player, reward_delta=amount)

    @property
    def sessions(self) -> list[Session]:
        return list(self._sessions.values())

    @property
    def records(self) -> list[PlayerRecord]:
        return list(self._records.values())

    def restore(self, sessions: list[Session], records: list[PlayerRecord]) -> None:
        self._sessions = {session.player: session for session in sessions if session.active}
        self._records = {record.player: record for record in records}
