"""Entity Token - reward earned by a completed payment."""

from dataclasses import dataclass
from typing import Any

from machine_booking.domain.entities.document_fields import read_bool, read_optional_str, read_str


@dataclass
class Token:
    id: str = ""
    user_id: str = ""
    order_id: str | None = None
    used: bool = False

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Token":
        return cls(
            id=doc_id,
            user_id=read_str(data, "user_id"),
            order_id=read_optional_str(data, "order_id"),
            used=read_bool(data, "used"),
        )

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {"user_id": self.user_id, "used": self.used}
        if self.order_id is not None:
            document["order_id"] = self.order_id
        return document
