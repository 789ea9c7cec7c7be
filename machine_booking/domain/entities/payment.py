"""Entity Payment - the single payment record of an order."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from machine_booking.domain.constants import PAYMENT_STATUS_COMPLETED, PAYMENT_STATUS_PENDING
from machine_booking.domain.entities.document_fields import (
    read_datetime,
    read_decimal,
    read_optional_str,
    read_str,
)


@dataclass
class Payment:
    """
    Payment created ``pending`` together with its order.

    It is mutated exactly once, to ``completed``, by the settlement saga.
    """

    id: str = ""
    order_id: str = ""
    amount: Decimal = Decimal("0")
    status: str = PAYMENT_STATUS_PENDING
    payment_method: str | None = None
    transaction_id: str | None = None
    paid_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == PAYMENT_STATUS_COMPLETED

    @property
    def can_be_completed(self) -> bool:
        return self.status == PAYMENT_STATUS_PENDING

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Payment":
        return cls(
            id=doc_id,
            order_id=read_str(data, "order_id"),
            amount=read_decimal(data, "amount"),
            status=read_str(data, "status", PAYMENT_STATUS_PENDING),
            payment_method=read_optional_str(data, "payment_method"),
            transaction_id=read_optional_str(data, "transaction_id"),
            paid_at=read_datetime(data, "paid_at"),
        )

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "order_id": self.order_id,
            "amount": self.amount,
            "status": self.status,
        }
        if self.payment_method is not None:
            document["payment_method"] = self.payment_method
        if self.transaction_id is not None:
            document["transaction_id"] = self.transaction_id
        if self.paid_at is not None:
            document["paid_at"] = self.paid_at
        return document
