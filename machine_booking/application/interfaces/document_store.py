"""Document Store port: collections of documents with filtered queries."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Sequence


class StoreError(Exception):
    """Generic, unrecoverable store failure."""


class PermissionDeniedError(StoreError):
    """The store refused access to a collection or document."""


class MissingIndexError(StoreError):
    """An ordering query needs an index the store does not have."""


class DocumentNotFoundError(StoreError):
    """Update or delete targeted a document that does not exist."""


class WriteConflictError(StoreError):
    """A conditional write found field values different from the expected ones."""

    def __init__(self, collection: str, doc_id: str, expected: dict[str, Any]):
        super().__init__(f"Conditional write on {collection}/{doc_id} lost: expected {expected}")
        self.collection = collection
        self.doc_id = doc_id
        self.expected = expected


class FilterOp(str, Enum):
    EQ = "=="
    NE = "!="
    IN = "in"
    GTE = ">="


@dataclass(frozen=True)
class Filter:
    field: str
    op: FilterOp
    value: Any


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = True


@dataclass(frozen=True)
class Query:
    """
    Immutable query description.

    Built fluently::

        Query("orders").where("user_id", FilterOp.EQ, uid).order("created_at")
    """

    collection: str
    filters: tuple[Filter, ...] = field(default_factory=tuple)
    order_by: OrderBy | None = None
    limit: int | None = None

    def where(self, field_name: str, op: FilterOp, value: Any) -> "Query":
        return replace(self, filters=self.filters + (Filter(field_name, op, value),))

    def order(self, field_name: str, descending: bool = True) -> "Query":
        return replace(self, order_by=OrderBy(field_name, descending))

    def take(self, limit: int) -> "Query":
        return replace(self, limit=limit)

    def unordered(self) -> "Query":
        """Same filters with no ordering and no limit (used by the index fallback)."""
        return replace(self, order_by=None, limit=None)


@dataclass
class Document:
    id: str
    data: dict[str, Any]


class DocumentStore:
    """
    Minimal document store client.

    Single-document operations are atomic; nothing spans documents.
    """

    async def get(self, collection: str, doc_id: str) -> Document | None:
        raise NotImplementedError

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Stores a new document and returns its generated id."""
        raise NotImplementedError

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> None:
        """
        Merges ``fields`` into the document.

        With ``expected`` the write only happens if every listed field has the
        given value; otherwise ``WriteConflictError`` is raised.
        """
        raise NotImplementedError

    async def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError

    async def query(self, query: Query) -> Sequence[Document]:
        raise NotImplementedError

    async def ping(self) -> bool:
        raise NotImplementedError
