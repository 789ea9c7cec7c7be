import logging
from contextlib import AsyncExitStack

from machine_booking.application.dtos.booking_dto import SettlementResult
from machine_booking.application.interfaces.clock import Clock
from machine_booking.application.interfaces.document_store import StoreError, WriteConflictError
from machine_booking.application.interfaces.id_generator import IdGenerator
from machine_booking.application.interfaces.machine_lock import MachineLock
from machine_booking.application.interfaces.order_repo import OrderRepo
from machine_booking.application.interfaces.outbox_repo import OutboxRepo
from machine_booking.application.interfaces.payment_repo import PaymentRepo
from machine_booking.application.interfaces.token_repo import TokenRepo
from machine_booking.application.interfaces.voucher_repo import VoucherRepo
from machine_booking.application.use_cases.check_availability import CheckAvailabilityUseCase
from machine_booking.application.use_cases.saga_repair import mint_reward_token, schedule_repair
from machine_booking.domain.constants import (
    OUTBOX_EVENT_MINT_REWARD_TOKEN,
    OUTBOX_EVENT_PROMOTE_ORDER_STATUS,
    PAYMENT_STATUS_COMPLETED,
)
from machine_booking.domain.entities.order import Order, status_for_start
from machine_booking.domain.entities.payment import Payment
from machine_booking.domain.entities.voucher import Voucher
from machine_booking.domain.errors import (
    PaymentAlreadyProcessedError,
    PaymentNotFoundError,
    SlotUnavailableError,
)
from machine_booking.domain.value_objects.money import Money


class CompletePaymentUseCase:
    """
    Settlement saga for a pending payment.

    Steps:
    1. Guard: the payment must still be ``pending``.
    2. Re-check the order's slot under the machine lock.
    3. Claim the voucher, if any, and compute the charged amount.
    4. Complete the payment with a write conditional on ``pending``.
    5. Promote the order status (repairable).
    6. Mint the reward token (repairable).

    Only steps 1-4 can fail the call. A failure in 5 or 6 is logged and
    persisted as an outbox event for the worker to replay.

    When the order cannot be read at all, the payment is still completed at
    full price without the slot re-check, and steps 5 and 6 are handed to
    the outbox keyed by ``payment.order_id``.
    """

    def __init__(
        self,
        payment_repo: PaymentRepo,
        order_repo: OrderRepo,
        voucher_repo: VoucherRepo,
        token_repo: TokenRepo,
        outbox_repo: OutboxRepo,
        availability: CheckAvailabilityUseCase,
        machine_lock: MachineLock,
        clock: Clock,
        id_generator: IdGenerator,
        currency_code: str = "MYR",
    ) -> None:
        self._payment_repo = payment_repo
        self._order_repo = order_repo
        self._voucher_repo = voucher_repo
        self._token_repo = token_repo
        self._outbox_repo = outbox_repo
        self._availability = availability
        self._machine_lock = machine_lock
        self._clock = clock
        self._id_generator = id_generator
        self._currency_code = currency_code
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        payment_id: str,
        payment_method: str,
        voucher_id: str | None = None,
        user_id: str | None = None,
    ) -> SettlementResult:
        """
        Args:
            user_id: When given, the payment's order must belong to this user;
                someone else's payment is reported as not found.
        """
        payment = await self._payment_repo.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        if not payment.can_be_completed:
            raise PaymentAlreadyProcessedError(payment_id, payment.status)

        try:
            order = await self._resolve_order(payment)
        except StoreError:
            self._logger.error(
                "Order lookup failed, settling payment without its order",
                exc_info=True,
                extra={"payment_id": payment_id, "order_id": payment.order_id},
            )
            return await self._settle_detached(payment, payment_method, voucher_id)

        if order is None:
            self._logger.warning(
                "No order found for payment, settling payment only",
                extra={"payment_id": payment_id, "order_id": payment.order_id},
            )
        elif user_id is not None and order.user_id != user_id:
            raise PaymentNotFoundError(payment_id)

        async with AsyncExitStack() as stack:
            if order is not None:
                await stack.enter_async_context(self._machine_lock.hold(order.machine_id))
                await self._recheck_slot(order)
            result = await self._settle(payment, order, payment_method, voucher_id)

        if order is not None:
            result.order_status = await self._promote_order(order)
            result.token_id = await self._mint_token(order)

        self._logger.info(
            "Payment completed",
            extra={
                "payment_id": payment_id,
                "order_id": result.order_id,
                "amount": str(result.amount),
                "discount": str(result.discount),
                "transaction_id": result.transaction_id,
                "voucher_id": result.voucher_id,
            },
        )
        return result

    async def _resolve_order(self, payment: Payment) -> Order | None:
        order = None
        if payment.order_id:
            order = await self._order_repo.get(payment.order_id)
        if order is None:
            order = await self._order_repo.find_by_payment_id(payment.id)
        return order

    async def _settle_detached(
        self,
        payment: Payment,
        payment_method: str,
        voucher_id: str | None,
    ) -> SettlementResult:
        result = await self._settle(payment, None, payment_method, voucher_id)
        if payment.order_id:
            now = self._clock.now()
            payload = {"order_id": payment.order_id}
            await schedule_repair(
                self._outbox_repo, OUTBOX_EVENT_PROMOTE_ORDER_STATUS, payment.order_id, payload, now
            )
            # The handler reads the user from the order once it is reachable.
            await schedule_repair(
                self._outbox_repo, OUTBOX_EVENT_MINT_REWARD_TOKEN, payment.order_id, payload, now
            )
        self._logger.info(
            "Payment completed without its order",
            extra={
                "payment_id": payment.id,
                "order_id": result.order_id,
                "amount": str(result.amount),
                "transaction_id": result.transaction_id,
            },
        )
        return result

    async def _recheck_slot(self, order: Order) -> None:
        slot = order.slot
        if slot is None:
            return
        available = await self._availability.execute(
            order.machine_id,
            slot.start,
            slot.end,
            exclude_order_id=order.id,
        )
        if not available:
            raise SlotUnavailableError(order.machine_id, order.start_time, order.end_time)

    async def _settle(
        self,
        payment: Payment,
        order: Order | None,
        payment_method: str,
        voucher_id: str | None,
    ) -> SettlementResult:
        full_price = Money(amount=payment.amount, currency_code=self._currency_code)
        voucher = await self._claim_voucher(voucher_id, order) if voucher_id else None
        claimed_voucher_id = voucher.id if voucher else None

        charged = full_price
        if voucher is not None:
            charged = full_price.minus_floored(voucher.discount)

        transaction_id = self._id_generator.generate_transaction_id()
        try:
            await self._payment_repo.mark_completed(
                payment.id,
                payment_method=payment_method,
                transaction_id=transaction_id,
                paid_at=self._clock.now(),
                amount=charged.amount,
            )
        except WriteConflictError as exc:
            await self._release_voucher(claimed_voucher_id, order)
            current = await self._payment_repo.get(payment.id)
            status = current.status if current else PAYMENT_STATUS_COMPLETED
            raise PaymentAlreadyProcessedError(payment.id, status) from exc
        except StoreError:
            await self._release_voucher(claimed_voucher_id, order)
            raise

        return SettlementResult(
            payment_id=payment.id,
            order_id=order.id if order else (payment.order_id or None),
            amount=charged.amount,
            discount=full_price.amount - charged.amount,
            transaction_id=transaction_id,
            voucher_id=claimed_voucher_id,
            currency_code=self._currency_code,
        )

    async def _claim_voucher(self, voucher_id: str, order: Order | None) -> Voucher | None:
        """Returns the voucher once it is claimed for the order, None to charge full price."""
        log_extra = {"voucher_id": voucher_id, "order_id": order.id if order else None}
        if order is None:
            self._logger.warning("Voucher ignored, payment has no order", extra=log_extra)
            return None

        try:
            voucher = await self._voucher_repo.get(voucher_id)
        except StoreError:
            self._logger.warning("Voucher lookup failed, charging full price", exc_info=True, extra=log_extra)
            return None

        if voucher is None:
            self._logger.warning("Voucher not found, charging full price", extra=log_extra)
            return None
        if not voucher.is_valid(self._clock.now()):
            self._logger.warning("Voucher used or expired, charging full price", extra=log_extra)
            return None
        if voucher.discount is None:
            self._logger.warning(
                "Unsupported voucher type, charging full price",
                extra={**log_extra, "voucher_type": voucher.type},
            )
            return None
        if voucher.user_id != order.user_id:
            self._logger.warning("Voucher belongs to another user, charging full price", extra=log_extra)
            return None

        try:
            await self._voucher_repo.claim(voucher.id, order.id)
        except StoreError:
            self._logger.warning("Voucher claim failed, charging full price", exc_info=True, extra=log_extra)
            return None

        return voucher

    async def _release_voucher(self, voucher_id: str | None, order: Order | None) -> None:
        if voucher_id is None or order is None:
            return
        try:
            await self._voucher_repo.release(voucher_id, order.id)
        except StoreError:
            self._logger.error(
                "Voucher release failed, voucher stays used",
                exc_info=True,
                extra={"voucher_id": voucher_id, "order_id": order.id},
            )

    async def _promote_order(self, order: Order) -> str:
        now = self._clock.now()
        status = status_for_start(order.start_time, now)
        try:
            await self._order_repo.update_status(order.id, status, now)
        except StoreError:
            self._logger.error(
                "Order status update failed after payment",
                exc_info=True,
                extra={"order_id": order.id, "status": status},
            )
            await schedule_repair(
                self._outbox_repo,
                OUTBOX_EVENT_PROMOTE_ORDER_STATUS,
                order.id,
                {"order_id": order.id},
                now,
            )
        return status

    async def _mint_token(self, order: Order) -> str | None:
        try:
            token = await mint_reward_token(self._token_repo, order.user_id, order.id)
        except StoreError:
            self._logger.error(
                "Reward token mint failed after payment",
                exc_info=True,
                extra={"order_id": order.id, "user_id": order.user_id},
            )
            await schedule_repair(
                self._outbox_repo,
                OUTBOX_EVENT_MINT_REWARD_TOKEN,
                order.id,
                {"order_id": order.id, "user_id": order.user_id},
                self._clock.now(),
            )
            return None
        return token.id
