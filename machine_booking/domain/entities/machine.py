"""Entity Machine - a bookable washer or dryer."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from machine_booking.domain.constants import MACHINE_STATUS_AVAILABLE
from machine_booking.domain.entities.document_fields import read_decimal, read_str


@dataclass
class Machine:
    """A physical machine in the catalog. Read-mostly from the booking core."""

    id: str = ""
    machine_name: str = ""
    type: str = ""
    price: Decimal = Decimal("0")
    status: str = MACHINE_STATUS_AVAILABLE

    @property
    def is_bookable(self) -> bool:
        return self.status == MACHINE_STATUS_AVAILABLE

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Machine":
        return cls(
            id=doc_id,
            machine_name=read_str(data, "machine_name"),
            type=read_str(data, "type"),
            price=read_decimal(data, "price"),
            status=read_str(data, "status", MACHINE_STATUS_AVAILABLE),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "machine_name": self.machine_name,
            "type": self.type,
            "price": self.price,
            "status": self.status,
        }
