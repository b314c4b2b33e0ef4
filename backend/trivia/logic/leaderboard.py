"""
Weekly top-K leaderboards.

``insert_score`` is the pure ranking step. It treats unfilled slots as
score 0 and inserts a new score at the first slot holding a strictly lower
score, so ties keep the earlier entry ahead and a score of 0 never ranks.

A player's existing entry is not removed before inserting the new one. When a
player improves within a week they can hold two slots until a later insert
pushes the stale one out; callers that rank by player must account for that.
"""

from __future__ import annotations

import structlog

from trivia.logic.types import LeaderboardEntry, WeeklyLeaderboard

logger = structlog.get_logger()


def find_insert_position(entries: tuple[LeaderboardEntry, ...], score: int, capacity: int) -> int | None:
    """Return the rank ``score`` would take, or None when it does not make the top ``capacity``."""
    for rank in range(capacity):
        current = entries[rank].score if rank < len(entries) else 0
        if current < score:
            return rank
    return None


def insert_score(board: WeeklyLeaderboard, player: str, score: int, capacity: int) -> WeeklyLeaderboard:
    """Return ``board`` with (player, score) ranked in, or ``board`` itself when it does not place."""
    position = find_insert_position(board.ranked_entries, score, capacity)
    if position is None:
        return board
    entries = list(board.ranked_entries)
    entries.insert(position, LeaderboardEntry(player=player, score=score))
    return board.model_copy(update={"ranked_entries": tuple(entries[:capacity])})


class LeaderboardBook:
    """Own one WeeklyLeaderboard per week number.

    Updates are split into ``propose`` (pure) and ``commit`` so that session
    completion can rank a score, mint its reward, and only then store the
    new board.
    """

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._boards: dict[int, WeeklyLeaderboard] = {}  # week_number -> board

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, week_number: int) -> WeeklyLeaderboard | None:
        return self._boards.get(week_number)

    def snapshot(self, week_number: int) -> WeeklyLeaderboard:
        """Return the week's board, or an empty one if nobody has scored in it."""
        return self._boards.get(week_number) or WeeklyLeaderboard(week_number=week_number)

    def weeks(self) -> list[int]:
        return sorted(self._boards)

    def propose(self, player: str, week_number: int, score: int) -> WeeklyLeaderboard:
        """Compute the board for ``week_number`` after recording ``score``, without storing it."""
        board = self._boards.get(week_number) or WeeklyLeaderboard(week_number=week_number)
        if board.rewards_distributed:
            logger.warning("score recorded after payout ignored", week=week_number, player=player, score=score)
            return board
        return insert_score(board, player, score, self._capacity)

    def commit(self, board: WeeklyLeaderboard) -> None:
        current = self._boards.get(board.week_number)
        if current is not None and current.rewards_distributed and current != board:
            raise ValueError(f"leaderboard for week {board.week_number} is frozen after payout")
        self._boards[board.week_number] = board

    def record_score(self, player: str, week_number: int, score: int) -> WeeklyLeaderboard:
        """Rank a score into its week's board, creating the board on first use."""
        board = self.propose(player, week_number, score)
        self.commit(board)
        logger.debug(
            "score recorded",
            week=week_number,
            player=player,
            score=score,
            entries=len(board.ranked_entries),
        )
        return board

    def mark_distributed(self, week_number: int) -> WeeklyLeaderboard:
        board = self._boards[week_number]
        updated = board.model_copy(update={"rewards_distributed": True})
        self._boards[week_number] = updated
        return updated

    def restore(self, boards: list[WeeklyLeaderboard]) -> None:
        self._boards = {board.week_number: board for board in boards}
