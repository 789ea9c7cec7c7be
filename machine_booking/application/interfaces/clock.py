"""Clock port - abstraction over the system time."""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Source of the current time.

    Lets tests inject a fixed clock for deterministic lifecycle decisions.
    """

    @abstractmethod
    def now(self) -> datetime:
        """
        Returns the current date/time.

        Returns:
            timezone-aware UTC datetime.
        """
        raise NotImplementedError


class SystemClock(Clock):
    """Real clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FakeClock(Clock):
    """
    Fixed clock for tests.

    Time only moves when ``set_time`` or ``advance`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        """
        Args:
            fixed_time: Time to report. Defaults to the real time at creation.
        """
        self._fixed_time = fixed_time or datetime.now(timezone.utc)

    def now(self) -> datetime:
        return self._fixed_time

    def set_time(self, new_time: datetime) -> None:
        self._fixed_time = new_time

    def advance(self, seconds: int = 0, minutes: int = 0, hours: int = 0, days: int = 0) -> None:
        """
        Moves the fixed time forward.

        Args:
            seconds: Seconds to advance.
            minutes: Minutes to advance.
            hours: Hours to advance.
            days: Days to advance.
        """
        delta = timedelta(seconds=seconds, minutes=minutes, hours=hours, days=days)
        self._fixed_time = self._fixed_time + delta
