"""Value Object TimeSlot - half-open booking interval on a machine."""

from dataclasses import dataclass
from datetime import datetime, timezone


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, truncated toward zero."""
    return int((as_utc(end) - as_utc(start)).total_seconds() / 60)


@dataclass(frozen=True)
class TimeSlot:
    """
    Immutable ``[start, end)`` interval.

    Attributes:
        start: Inclusive start of the slot (UTC).
        end: Exclusive end of the slot (UTC).
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if self.start >= self.end:
            raise ValueError(f"start must be before end: {self.start} >= {self.end}")

    def overlaps_with(self, other: "TimeSlot") -> bool:
        """Half-open overlap: back-to-back slots do not conflict."""
        return self.start < other.end and other.start < self.end

    def has_started(self, now: datetime) -> bool:
        return self.start <= as_utc(now)

    def has_ended(self, now: datetime) -> bool:
        return self.end <= as_utc(now)

    def __str__(self) -> str:
        return f"{self.start.isoformat()} -> {self.end.isoformat()}"
