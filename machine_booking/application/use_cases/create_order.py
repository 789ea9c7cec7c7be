import logging
from datetime import datetime

from machine_booking.application.dtos.booking_dto import BookingResult
from machine_booking.application.interfaces.clock import Clock
from machine_booking.application.interfaces.document_store import StoreError
from machine_booking.application.interfaces.machine_lock import MachineLock
from machine_booking.application.interfaces.machine_repo import MachineRepo
from machine_booking.application.interfaces.order_repo import OrderRepo
from machine_booking.application.interfaces.outbox_repo import OutboxRepo
from machine_booking.application.interfaces.payment_repo import PaymentRepo
from machine_booking.application.use_cases.check_availability import CheckAvailabilityUseCase
from machine_booking.application.use_cases.saga_repair import schedule_repair
from machine_booking.domain.constants import (
    MAX_BOOKING_MINUTES,
    MIN_BOOKING_MINUTES,
    ORDER_STATUS_CANCELLED,
    OUTBOX_EVENT_LINK_ORDER_PAYMENT,
    PAYMENT_STATUS_PENDING,
    TEMPERATURES,
)
from machine_booking.domain.entities.order import Order, status_for_start
from machine_booking.domain.entities.payment import Payment
from machine_booking.domain.errors import (
    InvalidBookingDurationError,
    MachineNotBookableError,
    MachineNotFoundError,
    SlotUnavailableError,
    ValidationError,
)
from machine_booking.domain.value_objects.money import Money
from machine_booking.domain.value_objects.time_slot import as_utc, minutes_between


class CreateOrderUseCase:
    """
    Books a machine slot: creates the Order, its pending Payment and links them.

    The availability check and every write run while holding the machine
    lock, so two bookings of the same machine cannot interleave.
    """

    def __init__(
        self,
        machine_repo: MachineRepo,
        order_repo: OrderRepo,
        payment_repo: PaymentRepo,
        outbox_repo: OutboxRepo,
        availability: CheckAvailabilityUseCase,
        machine_lock: MachineLock,
        clock: Clock,
        currency_code: str = "MYR",
        min_minutes: int = MIN_BOOKING_MINUTES,
        max_minutes: int = MAX_BOOKING_MINUTES,
    ) -> None:
        self._machine_repo = machine_repo
        self._order_repo = order_repo
        self._payment_repo = payment_repo
        self._outbox_repo = outbox_repo
        self._availability = availability
        self._machine_lock = machine_lock
        self._clock = clock
        self._currency_code = currency_code
        self._min_minutes = min_minutes
        self._max_minutes = max_minutes
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        user_id: str,
        machine_id: str,
        temperature: str,
        start: datetime,
        end: datetime,
    ) -> BookingResult:
        if not user_id:
            raise ValidationError("user_id", "must not be empty")
        if temperature not in TEMPERATURES:
            raise ValidationError("temperature", f"must be one of {', '.join(TEMPERATURES)}")

        machine = await self._machine_repo.get(machine_id)
        if machine is None:
            raise MachineNotFoundError(machine_id)

        start, end = as_utc(start), as_utc(end)
        duration_minutes = minutes_between(start, end)
        if duration_minutes < self._min_minutes or duration_minutes > self._max_minutes:
            raise InvalidBookingDurationError(
                duration_minutes, self._min_minutes, self._max_minutes
            )

        async with self._machine_lock.hold(machine_id):
            if not await self._availability.execute(machine_id, start, end):
                raise SlotUnavailableError(machine_id, start, end)
            if not machine.is_bookable:
                raise MachineNotBookableError(machine_id, machine.status)

            total = Money.for_duration(machine.price, duration_minutes, self._currency_code)
            now = self._clock.now()
            order = Order(
                user_id=user_id,
                machine_id=machine.id,
                machine_name=machine.machine_name,
                temperature=temperature,
                start_time=start,
                end_time=end,
                status=status_for_start(start, now),
                total_amount=total.amount,
                created_at=now,
            )
            order_id = await self._order_repo.add(order)

            payment_id = await self._create_payment(order_id, total)
            linkage_complete = await self._link_payment(order_id, payment_id)

        self._logger.info(
            "Order created",
            extra={
                "order_id": order_id,
                "payment_id": payment_id,
                "machine_id": machine_id,
                "user_id": user_id,
                "status": order.status,
                "total_amount": str(total.amount),
                "linkage_complete": linkage_complete,
            },
        )
        return BookingResult(
            order_id=order_id,
            payment_id=payment_id,
            status=order.status,
            total_amount=total.amount,
            currency_code=self._currency_code,
            linkage_complete=linkage_complete,
        )

    async def _create_payment(self, order_id: str, total: Money) -> str:
        payment = Payment(order_id=order_id, amount=total.amount, status=PAYMENT_STATUS_PENDING)
        try:
            return await self._payment_repo.add(payment)
        except StoreError:
            self._logger.error(
                "Payment creation failed, cancelling order",
                exc_info=True,
                extra={"order_id": order_id},
            )
            await self._cancel_order(order_id)
            raise

    async def _cancel_order(self, order_id: str) -> None:
        try:
            await self._order_repo.update_status(
                order_id, ORDER_STATUS_CANCELLED, self._clock.now()
            )
        except StoreError:
            # Left pending without a payment: it can never be confirmed.
            self._logger.error(
                "Order compensation failed",
                exc_info=True,
                extra={"order_id": order_id},
            )

    async def _link_payment(self, order_id: str, payment_id: str) -> bool:
        try:
            await self._order_repo.set_payment_id(order_id, payment_id, self._clock.now())
            return True
        except StoreError:
            self._logger.error(
                "Linking payment to order failed, scheduling repair",
                exc_info=True,
                extra={"order_id": order_id, "payment_id": payment_id},
            )

        await schedule_repair(
            self._outbox_repo,
            OUTBOX_EVENT_LINK_ORDER_PAYMENT,
            order_id,
            {"order_id": order_id, "payment_id": payment_id},
            self._clock.now(),
        )
        return False
