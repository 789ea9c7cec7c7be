"""Entity Voucher - one-time discount owned by a user."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from machine_booking.domain.constants import VOUCHER_DISCOUNTS, VOUCHER_TYPE_RM5_OFF
from machine_booking.domain.entities.document_fields import (
    read_bool,
    read_datetime,
    read_optional_str,
    read_str,
)
from machine_booking.domain.value_objects.time_slot import as_utc


@dataclass
class Voucher:
    id: str = ""
    user_id: str = ""
    type: str = VOUCHER_TYPE_RM5_OFF
    used: bool = False
    order_id: str | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def discount(self) -> Decimal | None:
        """Fixed discount for this voucher type, None if the type is not supported."""
        return VOUCHER_DISCOUNTS.get(self.type)

    def is_valid(self, now: datetime) -> bool:
        """Unused and not expired. A voucher without expiry never expires."""
        if self.used:
            return False
        if self.expires_at is None:
            return True
        return self.expires_at > as_utc(now)

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Voucher":
        return cls(
            id=doc_id,
            user_id=read_str(data, "user_id"),
            type=read_str(data, "type", VOUCHER_TYPE_RM5_OFF),
            used=read_bool(data, "used"),
            order_id=read_optional_str(data, "order_id"),
            expires_at=read_datetime(data, "expires_at"),
            created_at=read_datetime(data, "created_at"),
        )

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "user_id": self.user_id,
            "type": self.type,
            "used": self.used,
            "created_at": self.created_at,
        }
        if self.order_id is not None:
            document["order_id"] = self.order_id
        if self.expires_at is not None:
            document["expires_at"] = self.expires_at
        return document
