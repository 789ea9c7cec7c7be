"""
Retry helpers for transient database failures.

Deadlocks and lock-wait timeouts (MySQL) and "database is locked" (SQLite)
are retried with exponential backoff; any other error is raised at once.
"""

import asyncio
import logging
from functools import wraps
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MYSQL_DEADLOCK_ERROR = "1213"
MYSQL_LOCK_WAIT_TIMEOUT = "1205"
SQLITE_DATABASE_LOCKED = "database is locked"


def is_transient_lock_error(error: Exception) -> bool:
    """
    Args:
        error: The exception to check

    Returns:
        True if the error is a deadlock or lock contention worth retrying
    """
    if isinstance(error, (OperationalError, DBAPIError)):
        error_str = str(error)
        return (
            MYSQL_DEADLOCK_ERROR in error_str
            or MYSQL_LOCK_WAIT_TIMEOUT in error_str
            or SQLITE_DATABASE_LOCKED in error_str
        )
    return False


async def retry_on_deadlock(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.1,
) -> T:
    """
    Runs ``func`` again while it fails with a transient lock error.

    The delay before attempt ``n`` is ``base_delay * 2 ** (n - 1)``.

    Raises:
        The last error once ``max_attempts`` is reached, or any
        non-transient error immediately.
    """
    for attempt in range(max_attempts):
        try:
            return await func()
        except Exception as e:
            if not is_transient_lock_error(e):
                raise

            if attempt >= max_attempts - 1:
                logger.error(
                    "Database lock contention persists after max retries",
                    extra={"attempts": max_attempts, "error": str(e)},
                )
                raise

            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Database lock contention detected, retrying",
                extra={
                    "attempt": attempt + 1,
                    "max_attempts": max_attempts,
                    "retry_delay": delay,
                    "error": str(e),
                },
            )
            await asyncio.sleep(delay)

    raise RuntimeError("retry_on_deadlock called with max_attempts < 1")


def with_deadlock_retry(max_attempts: int = 3, base_delay: float = 0.1):
    """
    Decorator form of ``retry_on_deadlock``.

    Example:
        @with_deadlock_retry(max_attempts=3)
        async def update(self, collection, doc_id, fields):
            async with session_scope(self._session_maker) as session:
                ...
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            async def execute():
                return await func(*args, **kwargs)

            return await retry_on_deadlock(execute, max_attempts, base_delay)

        return wrapper

    return decorator
