from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol


class MachineLock(Protocol):
    """Exclusive per-machine lock held around a check-then-write sequence."""

    @asynccontextmanager
    async def hold(self, machine_id: str) -> AsyncIterator[None]:
        yield
