from datetime import datetime
from decimal import Decimal
from typing import Sequence

from machine_booking.application.interfaces.document_store import DocumentStore, FilterOp, Query
from machine_booking.application.interfaces.payment_repo import PaymentRepo
from machine_booking.domain.constants import (
    COLLECTION_PAYMENTS,
    IN_FILTER_MAX_VALUES,
    PAYMENT_STATUS_COMPLETED,
    PAYMENT_STATUS_PENDING,
)
from machine_booking.domain.entities.payment import Payment


class DocumentPaymentRepo(PaymentRepo):
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get(self, payment_id: str) -> Payment | None:
        doc = await self._store.get(COLLECTION_PAYMENTS, payment_id)
        if doc is None:
            return None
        return Payment.from_document(doc.id, doc.data)

    async def add(self, payment: Payment) -> str:
        payment_id = await self._store.add(COLLECTION_PAYMENTS, payment.to_document())
        payment.id = payment_id
        return payment_id

    async def list_completed_for_orders(self, order_ids: Sequence[str]) -> Sequence[Payment]:
        ids = list(dict.fromkeys(order_ids))
        payments: list[Payment] = []
        # The store caps 'in' filters, so large id sets are sent in chunks.
        for offset in range(0, len(ids), IN_FILTER_MAX_VALUES):
            chunk = ids[offset : offset + IN_FILTER_MAX_VALUES]
            query = (
                Query(COLLECTION_PAYMENTS)
                .where("order_id", FilterOp.IN, chunk)
                .where("status", FilterOp.EQ, PAYMENT_STATUS_COMPLETED)
            )
            docs = await self._store.query(query)
            payments.extend(Payment.from_document(doc.id, doc.data) for doc in docs)
        return payments

    async def mark_completed(
        self,
        payment_id: str,
        payment_method: str,
        transaction_id: str,
        paid_at: datetime,
        amount: Decimal,
    ) -> None:
        await self._store.update(
            COLLECTION_PAYMENTS,
            payment_id,
            {
                "status": PAYMENT_STATUS_COMPLETED,
                "payment_method": payment_method,
                "transaction_id": transaction_id,
                "paid_at": paid_at,
                "amount": amount,
            },
            expected={"status": PAYMENT_STATUS_PENDING},
        )
