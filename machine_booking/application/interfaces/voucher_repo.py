from typing import Sequence

from machine_booking.domain.entities.voucher import Voucher


class VoucherRepo:
    async def get(self, voucher_id: str) -> Voucher | None:
        raise NotImplementedError

    async def add(self, voucher: Voucher) -> str:
        raise NotImplementedError

    async def list_for_user(self, user_id: str) -> Sequence[Voucher]:
        """Newest first (by ``created_at``)."""
        raise NotImplementedError

    async def claim(self, voucher_id: str, order_id: str) -> None:
        """Marks the voucher used for ``order_id`` only while it is unused."""
        raise NotImplementedError

    async def release(self, voucher_id: str, order_id: str) -> None:
        """Undoes ``claim`` for the same order."""
        raise NotImplementedError
