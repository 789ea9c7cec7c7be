"""Ordered queries that survive a missing composite index."""

import logging
from typing import Sequence

from machine_booking.application.interfaces.document_store import (
    Document,
    DocumentStore,
    MissingIndexError,
    Query,
)

logger = logging.getLogger(__name__)


def sort_documents(
    documents: Sequence[Document],
    field_name: str,
    descending: bool = True,
) -> list[Document]:
    """Sorts by ``field_name`` with documents missing the field always last."""
    present = [doc for doc in documents if doc.data.get(field_name) is not None]
    missing = [doc for doc in documents if doc.data.get(field_name) is None]
    present.sort(key=lambda doc: doc.data[field_name], reverse=descending)
    return present + missing


async def query_with_index_fallback(store: DocumentStore, query: Query) -> list[Document]:
    """
    Runs an ordered query, falling back to a local sort when the store
    reports that the required index does not exist.

    The fallback re-issues the query without ordering and limit, sorts by the
    same field (documents without it go last) and then applies the limit.
    """
    try:
        return list(await store.query(query))
    except MissingIndexError:
        if query.order_by is None:
            raise
        logger.warning(
            "Index missing for ordered query, sorting locally",
            extra={"collection": query.collection, "order_field": query.order_by.field},
        )

    documents = await store.query(query.unordered())
    ordered = sort_documents(documents, query.order_by.field, query.order_by.descending)
    if query.limit is not None:
        ordered = ordered[: query.limit]
    return ordered
