from datetime import datetime
from decimal import Decimal
from typing import Sequence

from machine_booking.domain.entities.payment import Payment


class PaymentRepo:
    async def get(self, payment_id: str) -> Payment | None:
        raise NotImplementedError

    async def add(self, payment: Payment) -> str:
        raise NotImplementedError

    async def list_completed_for_orders(self, order_ids: Sequence[str]) -> Sequence[Payment]:
        raise NotImplementedError

    async def mark_completed(
        self,
        payment_id: str,
        payment_method: str,
        transaction_id: str,
        paid_at: datetime,
        amount: Decimal,
    ) -> None:
        """Completes the payment only while it is still ``pending``."""
        raise NotImplementedError
