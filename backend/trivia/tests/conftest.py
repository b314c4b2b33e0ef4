import pytest

from trivia.engine.app import TriviaEngine
from trivia.logic.leaderboard import LeaderboardBook
from trivia.logic.rng import PcgRandomness
from trivia.logic.settings import TriviaSettings
from trivia.memory.ledger import InMemoryRewardLedger
from trivia.tests.helpers import FIXED_SEED, TEST_START, make_bank
from trivia.tests.mocks.clock import FakeClock


@pytest.fixture
def clock():
    return FakeClock(TEST_START)


@pytest.fixture
def settings():
    return TriviaSettings()


@pytest.fixture
def bank():
    return make_bank(10)


@pytest.fixture
def ledger():
    return InMemoryRewardLedger()


@pytest.fixture
def randomness():
    return PcgRandomness(FIXED_SEED)


@pytest.fixture
def leaderboards(settings):
    return LeaderboardBook(capacity=settings.leaderboard_size)


@pytest.fixture
def engine(settings, bank, randomness, ledger, clock):
    return TriviaEngine(settings, bank, randomness, ledger, clock)
