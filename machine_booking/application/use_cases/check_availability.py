import logging
from datetime import datetime

from machine_booking.application.interfaces.document_store import PermissionDeniedError
from machine_booking.application.interfaces.order_repo import OrderRepo
from machine_booking.application.interfaces.payment_repo import PaymentRepo
from machine_booking.domain.constants import FAIL_CLOSED, FAIL_OPEN
from machine_booking.domain.errors import ValidationError
from machine_booking.domain.value_objects.time_slot import TimeSlot, as_utc


class CheckAvailabilityUseCase:
    """
    Decides whether ``[start, end)`` is free on a machine.

    Only confirmed orders block a slot: not cancelled and with a completed
    payment. Orders still waiting for payment never conflict.
    """

    def __init__(
        self,
        order_repo: OrderRepo,
        payment_repo: PaymentRepo,
        on_permission_denied: str = FAIL_OPEN,
    ) -> None:
        if on_permission_denied not in (FAIL_OPEN, FAIL_CLOSED):
            raise ValueError(f"Unknown permission-denied policy: {on_permission_denied}")
        self._order_repo = order_repo
        self._payment_repo = payment_repo
        self._on_permission_denied = on_permission_denied
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        machine_id: str,
        start: datetime,
        end: datetime,
        exclude_order_id: str | None = None,
    ) -> bool:
        if as_utc(end) <= as_utc(start):
            raise ValidationError("end", "must be after start")
        requested = TimeSlot(start=start, end=end)

        try:
            orders = [
                order
                for order in await self._order_repo.list_open_for_machine(machine_id)
                if order.id != exclude_order_id
            ]
            if not orders:
                return True
            payments = await self._payment_repo.list_completed_for_orders(
                [order.id for order in orders]
            )
        except PermissionDeniedError:
            return self._degraded(machine_id)

        confirmed_ids = {payment.order_id for payment in payments}
        for order in orders:
            if order.id not in confirmed_ids:
                continue
            slot = order.slot
            if slot is None:
                self._logger.debug(
                    "Skipping confirmed order without a usable slot",
                    extra={"machine_id": machine_id, "order_id": order.id},
                )
                continue
            if requested.overlaps_with(slot):
                self._logger.info(
                    "Slot conflicts with confirmed order",
                    extra={
                        "machine_id": machine_id,
                        "order_id": order.id,
                        "requested_start": requested.start.isoformat(),
                        "requested_end": requested.end.isoformat(),
                    },
                )
                return False
        return True

    def _degraded(self, machine_id: str) -> bool:
        available = self._on_permission_denied == FAIL_OPEN
        self._logger.warning(
            "Permission denied while checking availability, applying degraded policy",
            extra={
                "machine_id": machine_id,
                "policy": self._on_permission_denied,
                "reported_available": available,
            },
        )
        return available
