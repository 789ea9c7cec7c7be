"""Entity Order - a reservation of a machine for a time slot."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from machine_booking.domain.constants import (
    ORDER_STATUS_ACTIVE,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_PENDING,
)
from machine_booking.domain.entities.document_fields import (
    read_datetime,
    read_decimal,
    read_str,
)
from machine_booking.domain.value_objects.time_slot import TimeSlot, as_utc


def status_for_start(start_time: datetime | None, now: datetime) -> str:
    """``pending`` while the slot is strictly in the future, ``active`` otherwise."""
    if start_time is not None and as_utc(start_time) > as_utc(now):
        return ORDER_STATUS_PENDING
    return ORDER_STATUS_ACTIVE


@dataclass
class Order:
    """
    A machine reservation owned by a user.

    Orders and their Payment are created together by the booking orchestrator;
    ``payment_id`` stays empty until the link-back step succeeds.
    """

    # Identifiers
    id: str = ""
    user_id: str = ""
    machine_id: str = ""
    machine_name: str = ""

    # Booking details
    temperature: str = ""
    start_time: datetime | None = None
    end_time: datetime | None = None

    # State
    status: str = ORDER_STATUS_PENDING
    total_amount: Decimal = Decimal("0")
    payment_id: str = ""

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # === Properties ===

    @property
    def slot(self) -> TimeSlot | None:
        """The reserved slot, or None when a timestamp is missing or inverted."""
        if self.start_time is None or self.end_time is None:
            return None
        if as_utc(self.start_time) >= as_utc(self.end_time):
            return None
        return TimeSlot(start=self.start_time, end=self.end_time)

    # === Business methods ===

    def refreshed_status(self, now: datetime) -> str:
        """
        Lifecycle status as of ``now``.

        ``pending`` becomes ``active`` once the slot starts and ``active``
        becomes ``completed`` once it ends. Cancelled and completed orders
        never move.
        """
        status = self.status
        slot = self.slot
        if slot is None:
            return status
        if status == ORDER_STATUS_PENDING and slot.has_started(now):
            status = ORDER_STATUS_ACTIVE
        if status == ORDER_STATUS_ACTIVE and slot.has_ended(now):
            status = ORDER_STATUS_COMPLETED
        return status

    # === Document mapping ===

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Order":
        return cls(
            id=doc_id,
            user_id=read_str(data, "user_id"),
            machine_id=read_str(data, "machine_id"),
            machine_name=read_str(data, "machine_name"),
            temperature=read_str(data, "temperature"),
            start_time=read_datetime(data, "start_time"),
            end_time=read_datetime(data, "end_time"),
            status=read_str(data, "status", ORDER_STATUS_PENDING),
            total_amount=read_decimal(data, "total_amount"),
            payment_id=read_str(data, "payment_id"),
            created_at=read_datetime(data, "created_at"),
            updated_at=read_datetime(data, "updated_at"),
        )

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "user_id": self.user_id,
            "machine_id": self.machine_id,
            "machine_name": self.machine_name,
            "temperature": self.temperature,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "status": self.status,
            "total_amount": self.total_amount,
            "payment_id": self.payment_id,
            "created_at": self.created_at,
        }
        if self.updated_at is not None:
            document["updated_at"] = self.updated_at
        return document
