"""Ordered queries falling back to a local sort when an index is missing."""

import pytest

from machine_booking.application.interfaces.document_store import FilterOp, Query
from machine_booking.infrastructure.in_memory.document_store import InMemoryDocumentStore
from machine_booking.infrastructure.repositories.index_fallback import query_with_index_fallback
from tests.factories import at


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(enforce_indexes=True)


async def _seed(store):
    await store.add("orders", {"user_id": "u1", "created_at": at(9), "n": 1})
    await store.add("orders", {"user_id": "u1", "n": 2})
    await store.add("orders", {"user_id": "u1", "created_at": at(11), "n": 3})
    await store.add("orders", {"user_id": "u1", "created_at": at(10), "n": 4})
    await store.add("orders", {"user_id": "u2", "created_at": at(12), "n": 5})


class TestIndexFallback:
    @pytest.mark.asyncio
    async def test_sorts_locally_descending_with_missing_values_last(self, store):
        await _seed(store)
        query = Query("orders").where("user_id", FilterOp.EQ, "u1").order("created_at")

        docs = await query_with_index_fallback(store, query)

        assert [doc.data["n"] for doc in docs] == [3, 4, 1, 2]

    @pytest.mark.asyncio
    async def test_limit_is_applied_after_sorting(self, store):
        await _seed(store)
        query = Query("orders").where("user_id", FilterOp.EQ, "u1").order("created_at").take(2)

        docs = await query_with_index_fallback(store, query)

        assert [doc.data["n"] for doc in docs] == [3, 4]

    @pytest.mark.asyncio
    async def test_uses_store_ordering_when_index_exists(self, store):
        await _seed(store)
        store.add_index("orders", "created_at")
        query = Query("orders").where("user_id", FilterOp.EQ, "u1").order("created_at")

        docs = await query_with_index_fallback(store, query)

        # The store itself leaves out documents without the ordering field.
        assert [doc.data["n"] for doc in docs] == [3, 4, 1]
