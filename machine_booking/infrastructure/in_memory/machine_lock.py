import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from machine_booking.application.interfaces.machine_lock import MachineLock
from machine_booking.domain.errors import MachineLockTimeoutError


class InMemoryMachineLock(MachineLock):
    """
    One ``asyncio.Lock`` per machine id, valid within a single process.

    A machine's lock is dropped once nobody holds or waits for it, so the
    table only ever holds machines that are in use.
    """

    def __init__(self, wait_seconds: float = 5.0) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}
        self._wait_seconds = wait_seconds

    @property
    def tracked_machines(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, machine_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(machine_id, asyncio.Lock())
        self._users[machine_id] = self._users.get(machine_id, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self._wait_seconds)
            except asyncio.TimeoutError as exc:
                raise MachineLockTimeoutError(machine_id, self._wait_seconds) from exc
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[machine_id] -= 1
            if self._users[machine_id] == 0:
                del self._users[machine_id]
                del self._locks[machine_id]
