"""Per-key operation serialization with re-entrancy rejection."""

import asyncio
import contextlib
from collections.abc import AsyncIterator

import structlog

from trivia.logic.exceptions import ReentrantOperationError

logger = structlog.get_logger()


def player_key(player: str) -> str:
    return f"player:{player}"


def week_key(week_number: int) -> str:
    return f"week:{week_number}"


class OperationGuard:
    """Serialize mutating operations per player and per week.

    Each key gets its own asyncio.Lock, so operations on different players
    run concurrently while operations on the same player queue up. A task
    that already holds a key and asks for it again (typically a port
    callback calling back into the engine) gets ReentrantOperationError
    instead of deadlocking on its own lock.

    Lock order is player before week; no operation takes a player key while
    holding a week key.

    A key's lock exists only while some operation holds or waits for it; the
    last one out drops the entry, so idle players and past weeks leave
    nothing behind.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}  # key -> operations holding or waiting
        self._owners: dict[str, asyncio.Task[object]] = {}  # key -> task holding the lock

    def _enter(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _leave(self, key: str) -> None:
        remaining = self._users[key] - 1
        if remaining:
            self._users[key] = remaining
            return
        del self._users[key]
        del self._locks[key]

    @property
    def active_keys(self) -> list[str]:
        """Keys some operation currently holds or is waiting for."""
        return sorted(self._locks)

    @contextlib.asynccontextmanager
    async def hold(self, key: str, operation: str) -> AsyncIterator[None]:
        task = asyncio.current_task()
        if task is not None and self._owners.get(key) is task:
            logger.warning("re-entrant operation rejected", key=key, operation=operation)
            raise ReentrantOperationError(key=key, operation=operation)

        lock = self._enter(key)
        try:
            async with lock:
                if task is not None:
                    self._owners[key] = task
                try:
                    yield
                finally:
                    self._owners.pop(key, None)
        finally:
            self._leave(key)
