"""
End-to-end weekly cycle through the engine facade.

Plays sessions for several players across days and weeks, checks that the
leaderboard and ledger agree, distributes rewards, and exercises concurrent
calls and snapshot persistence.
"""

import asyncio
import random

import pytest

from shared.storage import LocalSnapshotStorage
from trivia.engine.app import TriviaEngine, create_engine
from trivia.engine.settings import TriviaEngineSettings
from trivia.logic.events import SessionEndedEvent
from trivia.logic.exceptions import (
    AlreadyActiveSessionError,
    CooldownNotElapsedError,
    NoActiveSessionError,
    OperationsInFlightError,
    TriviaError,
)
from trivia.logic.rng import PcgRandomness
from trivia.logic.settings import SECONDS_PER_DAY, SECONDS_PER_WEEK
from trivia.logic.types import EngineSnapshot
from trivia.memory.ledger import InMemoryRewardLedger
from trivia.tests.helpers import FIXED_SEED, TEST_START, TEST_WEEK, answer_for, make_bank, play_session
from trivia.tests.mocks.clock import FakeClock
from trivia.tests.mocks.ports import FlakyLedger

PLAYERS = ["alice", "bob", "carol", "dave", "erin"]


class TestWeeklyCycle:
    async def test_perfect_session_scenario(self, engine, ledger):
        events = await play_session(engine, "alice")
        ended = events[-1]
        assert isinstance(ended, SessionEndedEvent)
        assert ended.week_score == 300
        assert ledger.balance_of("alice") == 3
        board = engine.get_leaderboard()
        assert board.week_number == TEST_WEEK
        assert board.ranked_entries[0].player == "alice"
        assert board.ranked_entries[0].score == 300

    async def test_full_week(self, settings, ledger, clock):
        engine = TriviaEngine(settings, make_bank(60), PcgRandomness(FIXED_SEED), ledger, clock)
        correct_by_player = {"alice": 3, "bob": 1, "carol": 2, "dave": 0}

        for day in range(3):
            for player, correct in correct_by_player.items():
                await play_session(engine, player, correct=correct)
            if day < 2:
                clock.advance(SECONDS_PER_DAY)

        board = engine.get_leaderboard(TEST_WEEK)
        assert [(e.player, e.score) for e in board.ranked_entries] == [
            ("alice", 900),
            ("alice", 600),
            ("carol", 600),
        ]
        per_session_rewards = sum(correct_by_player.values()) * 3
        assert ledger.total_supply == per_session_rewards

        clock.set((TEST_WEEK + 1) * SECONDS_PER_WEEK)
        event = await engine.distribute_weekly_rewards(TEST_WEEK)
        assert [(p.player, p.amount) for p in event.payouts] == [("alice", 100), ("alice", 50), ("carol", 25)]
        assert ledger.balance_of("alice") == 9 + 150
        assert engine.get_player_stats("alice").total_reward_earned == 9 + 150
        assert ledger.total_supply == per_session_rewards + 175

    async def test_next_week_is_separate(self, engine, clock):
        await play_session(engine, "alice")
        clock.set((TEST_WEEK + 1) * SECONDS_PER_WEEK + 10)
        await play_session(engine, "bob", correct=1)
        await play_session(engine, "alice", correct=1)

        assert [e.player for e in engine.get_leaderboard(TEST_WEEK).ranked_entries] == ["alice"]
        assert [(e.player, e.score) for e in engine.get_leaderboard().ranked_entries] == [
            ("bob", 100),
            ("alice", 100),
        ]
        await engine.distribute_weekly_rewards(TEST_WEEK)
        assert not engine.get_leaderboard().rewards_distributed


class TestConcurrency:
    async def test_concurrent_starts_for_one_player(self, engine):
        results = await asyncio.gather(*(engine.start_session("alice") for _ in range(5)), return_exceptions=True)
        started = [r for r in results if not isinstance(r, BaseException)]
        rejected = [r for r in results if isinstance(r, AlreadyActiveSessionError)]
        assert len(started) == 1
        assert len(rejected) == 4

    @pytest.mark.parametrize("seed", range(5))
    async def test_random_interleavings(self, seed, settings, clock):
        rng = random.Random(seed)
        ledger = InMemoryRewardLedger()
        engine = TriviaEngine(settings, make_bank(40), PcgRandomness(FIXED_SEED), ledger, clock)

        async def act(player: str) -> None:
            for _ in range(8):
                await asyncio.sleep(0)
                try:
                    if rng.random() < 0.3:
                        await engine.start_session(player)
                    else:
                        question_id = engine.current_question(player)
                        answer = answer_for(question_id) if rng.random() < 0.7 else "wrong"
                        await engine.submit_answer(player, answer)
                except TriviaError:
                    pass
                for session in engine.sessions.players.sessions:
                    assert not session.is_complete

        await asyncio.gather(*(act(player) for player in PLAYERS))

        board = engine.get_leaderboard(TEST_WEEK)
        scores = [e.score for e in board.ranked_entries]
        assert scores == sorted(scores, reverse=True)
        assert len(scores) <= 3
        for player in PLAYERS:
            stats = engine.get_player_stats(player)
            assert stats.total_sessions <= 1
            assert ledger.balance_of(player) == stats.total_reward_earned

    async def test_concurrent_answers_advance_once_each(self, engine):
        started = await engine.start_session("alice")
        first = started.question_ids[0]
        results = await asyncio.gather(
            engine.submit_answer("alice", answer_for(first)),
            engine.submit_answer("alice", "wrong"),
            return_exceptions=True,
        )
        assert not any(isinstance(r, BaseException) for r in results)
        assert engine.sessions.players.get_session("alice").cursor == 2

    async def test_distribution_and_late_session_do_not_deadlock(self, engine, clock):
        await play_session(engine, "alice")
        clock.set((TEST_WEEK + 1) * SECONDS_PER_WEEK)
        await engine.start_session("bob")
        for _ in range(2):
            await engine.submit_answer("bob", answer_for(engine.current_question("bob")))

        async def finish_bob() -> None:
            await engine.submit_answer("bob", answer_for(engine.current_question("bob")))

        await asyncio.wait_for(
            asyncio.gather(engine.distribute_weekly_rewards(TEST_WEEK), finish_bob()),
            timeout=5,
        )
        assert engine.get_leaderboard(TEST_WEEK).rewards_distributed
        with pytest.raises(NoActiveSessionError):
            engine.current_question("bob")


class TestSnapshots:
    async def test_save_and_load(self, tmp_path, engine, clock, ledger, bank, randomness, settings):
        await play_session(engine, "alice")
        await engine.start_session("bob")
        await engine.submit_answer("bob", answer_for(engine.current_question("bob")))

        storage = LocalSnapshotStorage(tmp_path / "snapshots")
        engine.save_snapshot(storage, "week")

        restored = TriviaEngine(settings, bank, randomness, ledger, clock)
        assert restored.load_snapshot(storage, "week")
        assert restored.export_snapshot() == engine.export_snapshot()
        assert restored.get_player_stats("alice") == engine.get_player_stats("alice")
        assert restored.current_question("bob") == engine.current_question("bob")

        with pytest.raises(CooldownNotElapsedError):
            await restored.start_session("alice")

    def test_missing_snapshot(self, tmp_path, engine):
        assert not engine.load_snapshot(LocalSnapshotStorage(tmp_path), "nothing")

    async def test_restore_refused_while_operation_in_flight(self, settings, bank, randomness, clock):
        ledger = FlakyLedger()
        engine = TriviaEngine(settings, bank, randomness, ledger, clock)
        await engine.start_session("alice")
        for _ in range(2):
            await engine.submit_answer("alice", answer_for(engine.current_question("alice")))
        before = engine.export_snapshot()

        async def restore(address: str, amount: int) -> None:
            engine.restore_snapshot(EngineSnapshot())

        ledger.on_mint = restore
        with pytest.raises(OperationsInFlightError) as exc_info:
            await engine.submit_answer("alice", answer_for(engine.current_question("alice")))
        assert exc_info.value.keys == ["player:alice", f"week:{TEST_WEEK}"]
        assert engine.export_snapshot() == before

        ledger.on_mint = None
        engine.restore_snapshot(EngineSnapshot())
        assert engine.get_player_stats("alice").total_sessions == 0


class TestCreateEngine:
    async def test_fills_in_memory_adapters(self):
        clock = FakeClock(TEST_START)
        engine = create_engine(TriviaEngineSettings(random_seed=FIXED_SEED), clock=clock)
        for i in range(5):
            engine.questions.add_question(f"Q{i}?", answer_for(i))
        events = await play_session(engine, "alice")
        assert events[-1].reward == 3
        assert engine.ledger.balance_of("alice") == 3

    def test_seeded_engines_share_draw_order(self):
        first = create_engine(TriviaEngineSettings(random_seed=FIXED_SEED))
        second = create_engine(TriviaEngineSettings(random_seed=FIXED_SEED))
        assert first.randomness.seed == second.randomness.seed
