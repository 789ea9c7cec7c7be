"""InMemoryDocumentStore query semantics and failure controls."""

import pytest

from machine_booking.application.interfaces.document_store import (
    DocumentNotFoundError,
    FilterOp,
    MissingIndexError,
    PermissionDeniedError,
    Query,
    StoreError,
    WriteConflictError,
)
from machine_booking.infrastructure.in_memory.document_store import InMemoryDocumentStore
from tests.factories import at


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(enforce_indexes=True)


class TestCrud:
    @pytest.mark.asyncio
    async def test_add_generates_id_and_get_returns_copy(self, store):
        doc_id = await store.add("orders", {"user_id": "u1", "status": "pending"})

        doc = await store.get("orders", doc_id)
        doc.data["status"] = "tampered"

        assert doc_id
        assert (await store.get("orders", doc_id)).data["status"] == "pending"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store):
        assert await store.get("orders", "nope") is None

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, store):
        doc_id = await store.add("orders", {"user_id": "u1", "status": "pending"})

        await store.update("orders", doc_id, {"status": "active"})

        assert (await store.get("orders", doc_id)).data == {"user_id": "u1", "status": "active"}

    @pytest.mark.asyncio
    async def test_update_missing_document(self, store):
        with pytest.raises(DocumentNotFoundError):
            await store.update("orders", "nope", {"status": "active"})

    @pytest.mark.asyncio
    async def test_conditional_update_conflict_leaves_document(self, store):
        doc_id = await store.add("payments", {"status": "completed"})

        with pytest.raises(WriteConflictError):
            await store.update("payments", doc_id, {"amount": 1}, expected={"status": "pending"})

        assert "amount" not in (await store.get("payments", doc_id)).data

    @pytest.mark.asyncio
    async def test_delete(self, store):
        doc_id = await store.add("tokens", {"user_id": "u1", "used": False})

        await store.delete("tokens", doc_id)

        assert await store.get("tokens", doc_id) is None
        with pytest.raises(DocumentNotFoundError):
            await store.delete("tokens", doc_id)


class TestQuery:
    @pytest.mark.asyncio
    async def test_not_equal_skips_documents_missing_the_field(self, store):
        await store.add("orders", {"machine_id": "m1", "status": "pending"})
        await store.add("orders", {"machine_id": "m1", "status": "cancelled"})
        await store.add("orders", {"machine_id": "m1"})

        docs = await store.query(
            Query("orders").where("machine_id", FilterOp.EQ, "m1").where("status", FilterOp.NE, "cancelled")
        )

        assert [doc.data["status"] for doc in docs] == ["pending"]

    @pytest.mark.asyncio
    async def test_in_and_gte_filters(self, store):
        await store.add("payments", {"order_id": "o1", "paid_at": at(9)})
        await store.add("payments", {"order_id": "o2", "paid_at": at(11)})
        await store.add("payments", {"order_id": "o3", "paid_at": at(12)})

        docs = await store.query(
            Query("payments").where("order_id", FilterOp.IN, ["o1", "o2"]).where("paid_at", FilterOp.GTE, at(10))
        )

        assert [doc.data["order_id"] for doc in docs] == ["o2"]

    @pytest.mark.asyncio
    async def test_in_filter_is_capped(self, store):
        with pytest.raises(StoreError):
            await store.query(Query("payments").where("order_id", FilterOp.IN, [str(i) for i in range(31)]))

    @pytest.mark.asyncio
    async def test_order_and_limit(self, store):
        await store.add("vouchers", {"user_id": "u1", "created_at": at(9)})
        await store.add("vouchers", {"user_id": "u1", "created_at": at(11)})
        await store.add("vouchers", {"user_id": "u1", "created_at": at(10)})
        store.add_index("vouchers", "created_at")

        docs = await store.query(
            Query("vouchers").where("user_id", FilterOp.EQ, "u1").order("created_at").take(2)
        )

        assert [doc.data["created_at"] for doc in docs] == [at(11), at(10)]

    @pytest.mark.asyncio
    async def test_ordered_filtered_query_needs_index(self, store):
        with pytest.raises(MissingIndexError):
            await store.query(Query("orders").where("user_id", FilterOp.EQ, "u1").order("created_at"))


class TestFailureControls:
    @pytest.mark.asyncio
    async def test_denied_reads(self, store):
        store.deny("orders")

        with pytest.raises(PermissionDeniedError):
            await store.query(Query("orders"))
        # Writes are still allowed
        await store.add("orders", {"status": "pending"})

        store.allow("orders")
        assert len(await store.query(Query("orders"))) == 1

    @pytest.mark.asyncio
    async def test_denied_writes(self, store):
        store.deny("tokens", reads=False, writes=True)

        with pytest.raises(PermissionDeniedError):
            await store.add("tokens", {"user_id": "u1"})

    @pytest.mark.asyncio
    async def test_injected_failure_is_consumed(self, store):
        store.inject_failure("add", "payments", StoreError("unavailable"))

        with pytest.raises(StoreError):
            await store.add("payments", {"status": "pending"})
        assert await store.add("payments", {"status": "pending"})
