import asyncio
import copy
import uuid
from collections import defaultdict
from typing import Any, Sequence

from machine_booking.application.interfaces.document_store import (
    Document,
    DocumentNotFoundError,
    DocumentStore,
    Filter,
    FilterOp,
    MissingIndexError,
    PermissionDeniedError,
    Query,
    StoreError,
    WriteConflictError,
)
from machine_booking.domain.constants import IN_FILTER_MAX_VALUES

_MISSING = object()


def _matches(data: dict[str, Any], flt: Filter) -> bool:
    value = data.get(flt.field, _MISSING)
    # Like hosted document stores, a filter never matches a missing field.
    if value is _MISSING:
        return False
    if flt.op == FilterOp.EQ:
        return value == flt.value
    if flt.op == FilterOp.NE:
        return value != flt.value
    if flt.op == FilterOp.IN:
        return value in flt.value
    if flt.op == FilterOp.GTE:
        return value is not None and value >= flt.value
    raise StoreError(f"Unsupported filter operator: {flt.op}")


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed document store.

    Mimics the failure modes of a hosted store so degraded paths can be tested:
    - ``deny(collection)`` makes reads (and optionally writes) raise
      ``PermissionDeniedError``.
    - with ``enforce_indexes=True`` an ordered query that also filters needs a
      declared index (``add_index``) or raises ``MissingIndexError``.
    - ``inject_failure`` makes the next N calls of an operation fail.
    """

    def __init__(self, enforce_indexes: bool = False) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._denied_reads: set[str] = set()
        self._denied_writes: set[str] = set()
        self._indexes: set[tuple[str, str]] = set()
        self._enforce_indexes = enforce_indexes
        self._failures: dict[tuple[str, str], list[Exception]] = defaultdict(list)

    # === Test controls ===

    def deny(self, collection: str, reads: bool = True, writes: bool = False) -> None:
        if reads:
            self._denied_reads.add(collection)
        if writes:
            self._denied_writes.add(collection)

    def allow(self, collection: str) -> None:
        self._denied_reads.discard(collection)
        self._denied_writes.discard(collection)

    def add_index(self, collection: str, order_field: str) -> None:
        self._indexes.add((collection, order_field))

    def inject_failure(
        self, operation: str, collection: str, error: Exception, times: int = 1
    ) -> None:
        """Queues ``error`` for the next ``times`` calls of ``operation`` on ``collection``."""
        self._failures[(operation, collection)].extend([error] * times)

    def documents(self, collection: str) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._collections.get(collection, {}))

    # === DocumentStore ===

    async def get(self, collection: str, doc_id: str) -> Document | None:
        await self._enter("get", collection, write=False)
        data = self._collections[collection].get(doc_id)
        if data is None:
            return None
        return Document(id=doc_id, data=copy.deepcopy(data))

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        await self._enter("add", collection, write=True)
        doc_id = uuid.uuid4().hex[:20]
        self._collections[collection][doc_id] = copy.deepcopy(data)
        return doc_id

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> None:
        await self._enter("update", collection, write=True)
        current = self._collections[collection].get(doc_id)
        if current is None:
            raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")
        if expected:
            for key, value in expected.items():
                if current.get(key) != value:
                    raise WriteConflictError(collection, doc_id, expected)
        current.update(copy.deepcopy(fields))

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._enter("delete", collection, write=True)
        if self._collections[collection].pop(doc_id, None) is None:
            raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")

    async def query(self, query: Query) -> Sequence[Document]:
        await self._enter("query", query.collection, write=False)
        self._check_query(query)

        rows = [
            (doc_id, data)
            for doc_id, data in self._collections[query.collection].items()
            if all(_matches(data, flt) for flt in query.filters)
        ]
        if query.order_by is not None:
            key = query.order_by.field
            rows = [row for row in rows if row[1].get(key) is not None]
            rows.sort(key=lambda row: row[1][key], reverse=query.order_by.descending)
        if query.limit is not None:
            rows = rows[: query.limit]
        return [Document(id=doc_id, data=copy.deepcopy(data)) for doc_id, data in rows]

    async def ping(self) -> bool:
        return True

    # === Internals ===

    async def _enter(self, operation: str, collection: str, write: bool) -> None:
        # Yield to the loop like a real round-trip so concurrent workflows interleave.
        await asyncio.sleep(0)
        queued = self._failures.get((operation, collection))
        if queued:
            raise queued.pop(0)
        denied = self._denied_writes if write else self._denied_reads
        if collection in denied:
            action = "write" if write else "read"
            raise PermissionDeniedError(f"Missing or insufficient permissions to {action} {collection}")

    def _check_query(self, query: Query) -> None:
        for flt in query.filters:
            if flt.op == FilterOp.IN and len(flt.value) > IN_FILTER_MAX_VALUES:
                raise StoreError(
                    f"'in' filters support up to {IN_FILTER_MAX_VALUES} values, got {len(flt.value)}"
                )
        if (
            self._enforce_indexes
            and query.order_by is not None
            and any(flt.field != query.order_by.field for flt in query.filters)
            and (query.collection, query.order_by.field) not in self._indexes
        ):
            raise MissingIndexError(
                f"The query requires an index on {query.collection}.{query.order_by.field}"
            )
