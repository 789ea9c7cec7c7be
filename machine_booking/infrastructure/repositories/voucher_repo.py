from typing import Sequence

from machine_booking.application.interfaces.document_store import DocumentStore, FilterOp, Query
from machine_booking.application.interfaces.voucher_repo import VoucherRepo
from machine_booking.domain.constants import COLLECTION_VOUCHERS
from machine_booking.domain.entities.voucher import Voucher
from machine_booking.infrastructure.repositories.index_fallback import query_with_index_fallback


class DocumentVoucherRepo(VoucherRepo):
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get(self, voucher_id: str) -> Voucher | None:
        doc = await self._store.get(COLLECTION_VOUCHERS, voucher_id)
        if doc is None:
            return None
        return Voucher.from_document(doc.id, doc.data)

    async def add(self, voucher: Voucher) -> str:
        voucher_id = await self._store.add(COLLECTION_VOUCHERS, voucher.to_document())
        voucher.id = voucher_id
        return voucher_id

    async def list_for_user(self, user_id: str) -> Sequence[Voucher]:
        query = (
            Query(COLLECTION_VOUCHERS)
            .where("user_id", FilterOp.EQ, user_id)
            .order("created_at", descending=True)
        )
        docs = await query_with_index_fallback(self._store, query)
        return [Voucher.from_document(doc.id, doc.data) for doc in docs]

    async def claim(self, voucher_id: str, order_id: str) -> None:
        await self._store.update(
            COLLECTION_VOUCHERS,
            voucher_id,
            {"used": True, "order_id": order_id},
            expected={"used": False},
        )

    async def release(self, voucher_id: str, order_id: str) -> None:
        await self._store.update(
            COLLECTION_VOUCHERS,
            voucher_id,
            {"used": False, "order_id": None},
            expected={"used": True, "order_id": order_id},
        )
