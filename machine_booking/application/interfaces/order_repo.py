from datetime import datetime
from typing import Sequence

from machine_booking.domain.entities.order import Order


class OrderRepo:
    async def get(self, order_id: str) -> Order | None:
        raise NotImplementedError

    async def add(self, order: Order) -> str:
        raise NotImplementedError

    async def set_payment_id(self, order_id: str, payment_id: str, now: datetime) -> None:
        raise NotImplementedError

    async def update_status(self, order_id: str, status: str, now: datetime) -> None:
        raise NotImplementedError

    async def list_open_for_machine(self, machine_id: str) -> Sequence[Order]:
        """Orders of the machine whose status is not ``cancelled``."""
        raise NotImplementedError

    async def find_by_payment_id(self, payment_id: str) -> Order | None:
        raise NotImplementedError

    async def list_for_user(self, user_id: str) -> Sequence[Order]:
        """Newest first (by ``created_at``)."""
        raise NotImplementedError
