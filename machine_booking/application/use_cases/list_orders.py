import logging
from typing import Sequence

from machine_booking.application.interfaces.clock import Clock
from machine_booking.application.interfaces.document_store import PermissionDeniedError, StoreError
from machine_booking.application.interfaces.order_repo import OrderRepo
from machine_booking.domain.entities.order import Order
from machine_booking.domain.errors import OrderNotFoundError

logger = logging.getLogger(__name__)


async def refresh_order_status(order_repo: OrderRepo, order: Order, clock: Clock) -> Order:
    """
    Moves the order along its lifecycle as of now and writes the change back.

    The write is best-effort: the caller always gets the refreshed status.
    """
    now = clock.now()
    status = order.refreshed_status(now)
    if status == order.status:
        return order
    previous = order.status
    order.status = status
    try:
        await order_repo.update_status(order.id, status, now)
        order.updated_at = now
    except StoreError:
        logger.warning(
            "Could not persist refreshed order status",
            exc_info=True,
            extra={"order_id": order.id, "from_status": previous, "to_status": status},
        )
    return order


class ListUserOrdersUseCase:
    def __init__(self, order_repo: OrderRepo, clock: Clock) -> None:
        self._order_repo = order_repo
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def execute(self, user_id: str) -> Sequence[Order]:
        """Orders of the user, newest first. Permission denied yields an empty list."""
        try:
            orders = await self._order_repo.list_for_user(user_id)
        except PermissionDeniedError:
            self._logger.warning(
                "Permission denied listing orders, returning empty list",
                extra={"user_id": user_id},
            )
            return []
        return [await refresh_order_status(self._order_repo, order, self._clock) for order in orders]


class GetOrderUseCase:
    def __init__(self, order_repo: OrderRepo, clock: Clock) -> None:
        self._order_repo = order_repo
        self._clock = clock

    async def execute(self, order_id: str, user_id: str | None = None) -> Order:
        order = await self._order_repo.get(order_id)
        # Another user's order is reported as missing.
        if order is None or (user_id is not None and order.user_id != user_id):
            raise OrderNotFoundError(order_id)
        return await refresh_order_status(self._order_repo, order, self._clock)
