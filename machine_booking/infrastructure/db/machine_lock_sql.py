import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from sqlalchemy import delete, insert
from sqlalchemy.exc import IntegrityError

from machine_booking.application.interfaces.clock import Clock
from machine_booking.application.interfaces.id_generator import IdGenerator
from machine_booking.application.interfaces.machine_lock import MachineLock
from machine_booking.domain.errors import MachineLockTimeoutError
from machine_booking.infrastructure.db.engine import session_scope, to_db_datetime
from machine_booking.infrastructure.db.retry import retry_on_deadlock
from machine_booking.infrastructure.db.tables import machine_locks

logger = logging.getLogger(__name__)


class SQLMachineLock(MachineLock):
    """
    Machine lock shared by every process using the same database.

    The lock is a lease row keyed by machine id. It is taken by inserting the
    row (the primary key rejects a second holder) and given back by deleting
    it. A lease older than ``ttl_seconds`` belongs to a crashed holder and is
    reclaimed by the next caller.
    """

    def __init__(
        self,
        session_maker,
        clock: Clock,
        id_generator: IdGenerator,
        ttl_seconds: int = 30,
        wait_seconds: float = 5.0,
        poll_interval_seconds: float = 0.05,
    ) -> None:
        self._session_maker = session_maker
        self._clock = clock
        self._id_generator = id_generator
        self._ttl_seconds = ttl_seconds
        self._wait_seconds = wait_seconds
        self._poll_interval = poll_interval_seconds

    @asynccontextmanager
    async def hold(self, machine_id: str) -> AsyncIterator[None]:
        owner = self._id_generator.generate_lock_owner()
        await self._acquire(machine_id, owner)
        try:
            yield
        finally:
            await retry_on_deadlock(lambda: self._release(machine_id, owner))

    async def _acquire(self, machine_id: str, owner: str) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._wait_seconds
        while True:
            if await retry_on_deadlock(lambda: self._try_acquire(machine_id, owner)):
                return
            if loop.time() >= deadline:
                logger.warning(
                    "Machine lock wait timed out",
                    extra={"machine_id": machine_id, "wait_seconds": self._wait_seconds},
                )
                raise MachineLockTimeoutError(machine_id, self._wait_seconds)
            await asyncio.sleep(self._poll_interval)

    async def _try_acquire(self, machine_id: str, owner: str) -> bool:
        now = to_db_datetime(self._clock.now())
        try:
            async with session_scope(self._session_maker) as session:
                await session.execute(
                    delete(machine_locks).where(
                        machine_locks.c.machine_id == machine_id,
                        machine_locks.c.expires_at <= now,
                    )
                )
                await session.execute(
                    insert(machine_locks).values(
                        machine_id=machine_id,
                        owner=owner,
                        acquired_at=now,
                        expires_at=now + timedelta(seconds=self._ttl_seconds),
                    )
                )
        except IntegrityError:
            return False
        return True

    async def _release(self, machine_id: str, owner: str) -> None:
        async with session_scope(self._session_maker) as session:
            await session.execute(
                delete(machine_locks).where(
                    machine_locks.c.machine_id == machine_id,
                    machine_locks.c.owner == owner,
                )
            )
