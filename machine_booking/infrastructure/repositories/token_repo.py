from typing import Sequence

from machine_booking.application.interfaces.document_store import DocumentStore, FilterOp, Query
from machine_booking.application.interfaces.token_repo import TokenRepo
from machine_booking.domain.constants import COLLECTION_TOKENS
from machine_booking.domain.entities.token import Token


class DocumentTokenRepo(TokenRepo):
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def _unused(self, user_id: str) -> Query:
        return (
            Query(COLLECTION_TOKENS)
            .where("user_id", FilterOp.EQ, user_id)
            .where("used", FilterOp.EQ, False)
        )

    async def add(self, token: Token) -> str:
        token_id = await self._store.add(COLLECTION_TOKENS, token.to_document())
        token.id = token_id
        return token_id

    async def count_unused(self, user_id: str) -> int:
        docs = await self._store.query(self._unused(user_id))
        return len(docs)

    async def find_unused(self, user_id: str, limit: int = 1) -> Sequence[Token]:
        docs = await self._store.query(self._unused(user_id).take(limit))
        return [Token.from_document(doc.id, doc.data) for doc in docs]

    async def find_by_order(self, order_id: str) -> Token | None:
        query = Query(COLLECTION_TOKENS).where("order_id", FilterOp.EQ, order_id).take(1)
        docs = await self._store.query(query)
        if not docs:
            return None
        return Token.from_document(docs[0].id, docs[0].data)

    async def mark_used(self, token_id: str) -> None:
        await self._store.update(
            COLLECTION_TOKENS,
            token_id,
            {"used": True},
            expected={"used": False},
        )

    async def mark_unused(self, token_id: str) -> None:
        await self._store.update(
            COLLECTION_TOKENS,
            token_id,
            {"used": False},
            expected={"used": True},
        )
