"""Domain value objects."""

from machine_booking.domain.value_objects.money import Money
from machine_booking.domain.value_objects.time_slot import TimeSlot, as_utc, minutes_between

__all__ = [
    "Money",
    "TimeSlot",
    "as_utc",
    "minutes_between",
]
