from typing import Sequence

from machine_booking.domain.entities.token import Token


class TokenRepo:
    async def add(self, token: Token) -> str:
        raise NotImplementedError

    async def count_unused(self, user_id: str) -> int:
        raise NotImplementedError

    async def find_unused(self, user_id: str, limit: int = 1) -> Sequence[Token]:
        raise NotImplementedError

    async def find_by_order(self, order_id: str) -> Token | None:
        raise NotImplementedError

    async def mark_used(self, token_id: str) -> None:
        """Flips ``used`` only while it is still ``False``."""
        raise NotImplementedError

    async def mark_unused(self, token_id: str) -> None:
        """Gives a consumed token back; flips ``used`` only while it is ``True``."""
        raise NotImplementedError
