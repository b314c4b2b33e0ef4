"""Simulate one week of daily trivia and pay out the weekly leaderboard.

Usage: uv run python bin/simulate-week.py [num_players] [snapshot_name]

Reads TRIVIA_* settings from the environment. Every simulated player plays
once a day for seven days, answering each question correctly with a
player-specific probability. When snapshot_name is given, the final engine
state is saved under TRIVIA_SNAPSHOT_DIR.
"""

import asyncio
import random
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from shared.logging import setup_logging
from shared.storage import LocalSnapshotStorage
from trivia.engine.app import create_engine, system_clock
from trivia.engine.settings import TriviaEngineSettings
from trivia.logic.exceptions import TriviaError
from trivia.logic.settings import SECONDS_PER_DAY
from trivia.memory.question_bank import InMemoryQuestionBank

QUESTION_COUNT = 200
DAYS = 7


class SimulatedClock:
    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


async def main() -> None:
    if len(sys.argv) > 3:
        print(f"Usage: {sys.argv[0]} [num_players] [snapshot_name]")
        sys.exit(1)

    num_players = int(sys.argv[1]) if len(sys.argv) > 1 else 8
    snapshot_name = sys.argv[2] if len(sys.argv) > 2 else None

    settings = TriviaEngineSettings()
    setup_logging(log_dir=settings.log_dir)

    bank = InMemoryQuestionBank()
    for i in range(QUESTION_COUNT):
        bank.add_question(f"Question {i}?", f"answer {i}")

    trivia_settings = settings.to_trivia_settings()
    clock = SimulatedClock(system_clock())
    engine = create_engine(settings, questions=bank, clock=clock)
    week = engine.current_week
    week_start = week * trivia_settings.week_seconds

    rng = random.Random(settings.random_seed)
    players = {f"player-{i}": rng.uniform(0.2, 0.95) for i in range(num_players)}

    # one hour into each day, so every player's daily cooldown has ended
    for day in range(DAYS):
        clock.now = week_start + day * SECONDS_PER_DAY + 3600
        for player, skill in players.items():
            try:
                await engine.start_session(player)
                for _ in range(trivia_settings.batch_size):
                    question_id = engine.current_question(player)
                    answer = f"answer {question_id}" if rng.random() < skill else "no idea"
                    await engine.submit_answer(player, answer)
            except TriviaError as e:
                print(f"day {day + 1}: {player} skipped ({e})")

    print(f"Leaderboard for week {week}:")
    for rank, entry in enumerate(engine.get_leaderboard(week).ranked_entries):
        print(f"  {rank + 1}. {entry.player}: {entry.score}")

    clock.now = week_start + trivia_settings.week_seconds
    event = await engine.distribute_weekly_rewards(week)
    print(f"Paid {event.total_paid} tokens to {len(event.payouts)} players")

    for player in players:
        stats = engine.get_player_stats(player)
        print(
            f"  {player}: {stats.total_sessions} sessions, "
            f"{stats.total_correct_answers} correct, {stats.total_reward_earned} tokens"
        )

    if snapshot_name is not None:
        path = engine.save_snapshot(LocalSnapshotStorage(settings.snapshot_dir), snapshot_name)
        print(f"Snapshot saved to {path}")


if __name__ == "__main__":
    asyncio.run(main())
