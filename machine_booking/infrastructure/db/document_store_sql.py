import logging
import uuid
from datetime import datetime
from functools import wraps
from typing import Any, Sequence

from sqlalchemy import Table, delete, insert, select, text, update
from sqlalchemy.exc import SQLAlchemyError

from machine_booking.application.interfaces.document_store import (
    Document,
    DocumentNotFoundError,
    DocumentStore,
    Filter,
    FilterOp,
    PermissionDeniedError,
    Query,
    StoreError,
    WriteConflictError,
)
from machine_booking.domain.constants import IN_FILTER_MAX_VALUES
from machine_booking.infrastructure.db.engine import (
    from_db_datetime,
    session_scope,
    to_db_datetime,
)
from machine_booking.infrastructure.db.retry import with_deadlock_retry
from machine_booking.infrastructure.db.tables import COLLECTION_TABLES

logger = logging.getLogger(__name__)

# Driver messages that mean the database user lacks a privilege.
PERMISSION_DENIED_MARKERS = (
    "access denied",
    "command denied",
    "permission denied",
    "readonly database",
)


def translate_error(error: SQLAlchemyError) -> StoreError:
    message = str(error)
    if any(marker in message.lower() for marker in PERMISSION_DENIED_MARKERS):
        return PermissionDeniedError(message)
    return StoreError(message)


def store_operation(func):
    """Retries lock contention, then maps driver errors onto the store taxonomy."""
    retried = with_deadlock_retry()(func)

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await retried(*args, **kwargs)
        except SQLAlchemyError as exc:
            error = translate_error(exc)
            logger.warning(
                "Store operation failed",
                extra={"operation": func.__name__, "error_type": type(error).__name__},
            )
            raise error from exc

    return wrapper


def _db_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_db_datetime(value)
    return value


class SQLDocumentStore(DocumentStore):
    """
    Document store over SQLAlchemy Core, one table per collection.

    Every call runs in its own transaction, so single-document writes are
    atomic and nothing spans documents. NULL columns read back as absent
    fields.
    """

    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    @store_operation
    async def get(self, collection: str, doc_id: str) -> Document | None:
        table = self._table(collection)
        async with session_scope(self._session_maker) as session:
            result = await session.execute(select(table).where(table.c.id == doc_id))
            row = result.first()
        if row is None:
            return None
        return self._to_document(row)

    @store_operation
    async def add(self, collection: str, data: dict[str, Any]) -> str:
        table = self._table(collection)
        doc_id = uuid.uuid4().hex[:20]
        values = self._to_row(table, data)
        values["id"] = doc_id
        async with session_scope(self._session_maker) as session:
            await session.execute(insert(table).values(**values))
        return doc_id

    @store_operation
    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> None:
        table = self._table(collection)
        conditions = [table.c.id == doc_id]
        for key, value in (expected or {}).items():
            conditions.append(self._condition(table, Filter(key, FilterOp.EQ, value)))

        async with session_scope(self._session_maker) as session:
            result = await session.execute(
                update(table).where(*conditions).values(**self._to_row(table, fields))
            )
            if result.rowcount == 1:
                return
            exists = await session.execute(select(table.c.id).where(table.c.id == doc_id))
            if exists.first() is None:
                raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")
            raise WriteConflictError(collection, doc_id, expected or {})

    @store_operation
    async def delete(self, collection: str, doc_id: str) -> None:
        table = self._table(collection)
        async with session_scope(self._session_maker) as session:
            result = await session.execute(delete(table).where(table.c.id == doc_id))
            if result.rowcount == 0:
                raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")

    @store_operation
    async def query(self, query: Query) -> Sequence[Document]:
        table = self._table(query.collection)
        stmt = select(table).where(*[self._condition(table, flt) for flt in query.filters])
        if query.order_by is not None:
            column = self._column(table, query.order_by.field)
            stmt = stmt.where(column.is_not(None))
            stmt = stmt.order_by(column.desc() if query.order_by.descending else column.asc())
        if query.limit is not None:
            stmt = stmt.limit(query.limit)

        async with session_scope(self._session_maker) as session:
            result = await session.execute(stmt)
            rows = result.all()
        return [self._to_document(row) for row in rows]

    @store_operation
    async def ping(self) -> bool:
        async with session_scope(self._session_maker) as session:
            await session.execute(text("SELECT 1"))
        return True

    # === Mapping ===

    def _table(self, collection: str) -> Table:
        table = COLLECTION_TABLES.get(collection)
        if table is None:
            raise StoreError(f"Unknown collection: {collection}")
        return table

    def _column(self, table: Table, field_name: str):
        if field_name == "id" or field_name not in table.c:
            raise StoreError(f"Unknown field '{field_name}' in {table.name}")
        return table.c[field_name]

    def _condition(self, table: Table, flt: Filter):
        column = self._column(table, flt.field)
        if flt.op == FilterOp.EQ:
            if flt.value is None:
                return column.is_(None)
            return column == _db_value(flt.value)
        if flt.op == FilterOp.NE:
            return column.is_not(None) & (column != _db_value(flt.value))
        if flt.op == FilterOp.IN:
            values = [_db_value(value) for value in flt.value]
            if len(values) > IN_FILTER_MAX_VALUES:
                raise StoreError(
                    f"'in' filters support up to {IN_FILTER_MAX_VALUES} values, got {len(values)}"
                )
            return column.in_(values)
        if flt.op == FilterOp.GTE:
            return column >= _db_value(flt.value)
        raise StoreError(f"Unsupported filter operator: {flt.op}")

    def _to_row(self, table: Table, data: dict[str, Any]) -> dict[str, Any]:
        return {self._column(table, key).name: _db_value(value) for key, value in data.items()}

    def _to_document(self, row) -> Document:
        data: dict[str, Any] = {}
        for key, value in row._mapping.items():
            if key == "id" or value is None:
                continue
            if isinstance(value, datetime):
                value = from_db_datetime(value)
            data[key] = value
        return Document(id=row._mapping["id"], data=data)
