"""In-memory reward ledger keeping balances and a mint history."""

import structlog
from pydantic import BaseModel, ConfigDict

from trivia.logic.ports import RewardLedger

logger = structlog.get_logger()


class MintRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    amount: int


class InMemoryRewardLedger(RewardLedger):
    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._history: list[MintRecord] = []

    async def mint(self, address: str, amount: int) -> None:
        if not address:
            raise ValueError("mint address must not be empty")
        if amount <= 0:
            raise ValueError(f"mint amount must be positive, got {amount}")
        self._balances[address] = self._balances.get(address, 0) + amount
        self._history.append(MintRecord(address=address, amount=amount))
        logger.debug("minted", address=address, amount=amount)

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    @property
    def total_supply(self) -> int:
        return sum(self._balances.values())

    @property
    def history(self) -> list[MintRecord]:
        return list(self._history)
