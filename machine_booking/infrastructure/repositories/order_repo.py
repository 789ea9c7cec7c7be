from datetime import datetime
from typing import Sequence

from machine_booking.application.interfaces.document_store import DocumentStore, FilterOp, Query
from machine_booking.application.interfaces.order_repo import OrderRepo
from machine_booking.domain.constants import COLLECTION_ORDERS, ORDER_STATUS_CANCELLED
from machine_booking.domain.entities.order import Order
from machine_booking.infrastructure.repositories.index_fallback import query_with_index_fallback


class DocumentOrderRepo(OrderRepo):
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get(self, order_id: str) -> Order | None:
        doc = await self._store.get(COLLECTION_ORDERS, order_id)
        if doc is None:
            return None
        return Order.from_document(doc.id, doc.data)

    async def add(self, order: Order) -> str:
        order_id = await self._store.add(COLLECTION_ORDERS, order.to_document())
        order.id = order_id
        return order_id

    async def set_payment_id(self, order_id: str, payment_id: str, now: datetime) -> None:
        await self._store.update(
            COLLECTION_ORDERS,
            order_id,
            {"payment_id": payment_id, "updated_at": now},
        )

    async def update_status(self, order_id: str, status: str, now: datetime) -> None:
        await self._store.update(
            COLLECTION_ORDERS,
            order_id,
            {"status": status, "updated_at": now},
        )

    async def list_open_for_machine(self, machine_id: str) -> Sequence[Order]:
        query = (
            Query(COLLECTION_ORDERS)
            .where("machine_id", FilterOp.EQ, machine_id)
            .where("status", FilterOp.NE, ORDER_STATUS_CANCELLED)
        )
        docs = await self._store.query(query)
        return [Order.from_document(doc.id, doc.data) for doc in docs]

    async def find_by_payment_id(self, payment_id: str) -> Order | None:
        query = Query(COLLECTION_ORDERS).where("payment_id", FilterOp.EQ, payment_id).take(1)
        docs = await self._store.query(query)
        if not docs:
            return None
        return Order.from_document(docs[0].id, docs[0].data)

    async def list_for_user(self, user_id: str) -> Sequence[Order]:
        query = (
            Query(COLLECTION_ORDERS)
            .where("user_id", FilterOp.EQ, user_id)
            .order("created_at", descending=True)
        )
        docs = await query_with_index_fallback(self._store, query)
        return [Order.from_document(doc.id, doc.data) for doc in docs]
