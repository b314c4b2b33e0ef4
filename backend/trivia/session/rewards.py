"""
Weekly leaderboard payouts.

Once a week has ended its leaderboard is walked once, best rank first, and
each ranked entry is paid the amount configured for its rank. The board's
``rewards_distributed`` flag is set after every mint succeeded; a failed mint
leaves the board undistributed and the player records untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from trivia.logic.events import WeeklyRewardsDistributedEvent
from trivia.logic.exceptions import AlreadyDistributedError, NoLeaderboardForWeekError, WeekNotEndedError
from trivia.logic.periods import has_week_ended, next_week_start
from trivia.logic.ports import call_port
from trivia.logic.types import RewardPayout
from trivia.session.guard import week_key

if TYPE_CHECKING:
    from collections.abc import Callable

    from trivia.logic.leaderboard import LeaderboardBook
    from trivia.logic.ports import RewardLedger
    from trivia.logic.settings import TriviaSettings
    from trivia.logic.types import WeeklyLeaderboard
    from trivia.session.guard import OperationGuard
    from trivia.session.player_store import PlayerStore

logger = structlog.get_logger()


def plan_payouts(board: WeeklyLeaderboard, reward_table: tuple[int, ...]) -> list[RewardPayout]:
    """Map ranked entries to their rank's reward, skipping zero amounts."""
    payouts: list[RewardPayout] = []
    for rank, entry in enumerate(board.ranked_entries[: len(reward_table)]):
        amount = reward_table[rank]
        if amount > 0:
            payouts.append(RewardPayout(rank=rank, player=entry.player, amount=amount))
    return payouts


class RewardDistributor:
    def __init__(
        self,
        settings: TriviaSettings,
        leaderboards: LeaderboardBook,
        players: PlayerStore,
        ledger: RewardLedger,
        guard: OperationGuard,
        clock: Callable[[], int],
    ) -> None:
        self._settings = settings
        self._leaderboards = leaderboards
        self._players = players
        self._ledger = ledger
        self._guard = guard
        self._clock = clock

    def _check_preconditions(self, week_number: int, now: int) -> WeeklyLeaderboard:
        if not has_week_ended(week_number, now, self._settings.week_seconds):
            raise WeekNotEndedError(week_number=week_number, ends_at=next_week_start(week_number, self._settings.week_seconds))
        board = self._leaderboards.get(week_number)
        if board is None:
            raise NoLeaderboardForWeekError(week_number=week_number)
        if board.rewards_distributed:
            raise AlreadyDistributedError(week_number=week_number)
        return board

    async def distribute_weekly_rewards(self, week_number: int) -> WeeklyRewardsDistributedEvent:
        """Pay the ranked players of a finished week, exactly once."""
        async with self._guard.hold(week_key(week_number), "distribute_weekly_rewards"):
            now = self._clock()
            board = self._check_preconditions(week_number, now)
            payouts = plan_payouts(board, self._settings.weekly_reward_table)

            for payout in payouts:
                await call_port("ledger", "mint", self._ledger.mint(payout.player, payout.amount))

            for payout in payouts:
                self._players.credit_reward(payout.player, payout.amount)
            self._leaderboards.mark_distributed(week_number)

        event = WeeklyRewardsDistributedEvent(timestamp=now, week_number=week_number, payouts=payouts)
        logger.info(
            "weekly rewards distributed",
            week=week_number,
            winners=len(payouts),
            total_paid=event.total_paid,
        )
        return event
