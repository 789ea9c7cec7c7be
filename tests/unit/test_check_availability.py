"""Availability of a machine slot against confirmed orders."""

from decimal import Decimal

import pytest

from machine_booking.application.interfaces.document_store import StoreError
from machine_booking.application.use_cases.check_availability import CheckAvailabilityUseCase
from machine_booking.domain.constants import (
    FAIL_CLOSED,
    ORDER_STATUS_CANCELLED,
    ORDER_STATUS_PENDING,
    PAYMENT_STATUS_COMPLETED,
    PAYMENT_STATUS_PENDING,
)
from machine_booking.domain.entities.order import Order
from machine_booking.domain.entities.payment import Payment
from machine_booking.domain.errors import ValidationError
from tests.factories import NOW, at, book, book_and_pay


async def _order(order_repo, payment_repo, machine_id, start, end, paid=True, status=ORDER_STATUS_PENDING):
    """Stores an order and its payment directly, bypassing the booking workflow."""
    order = Order(
        user_id="user-x",
        machine_id=machine_id,
        start_time=start,
        end_time=end,
        status=status,
        total_amount=Decimal("2.00"),
        created_at=NOW,
    )
    await order_repo.add(order)
    payment = Payment(
        order_id=order.id,
        amount=Decimal("2.00"),
        status=PAYMENT_STATUS_COMPLETED if paid else PAYMENT_STATUS_PENDING,
    )
    await payment_repo.add(payment)
    return order


class TestCheckAvailability:
    @pytest.mark.asyncio
    async def test_machine_without_orders_is_available(self, availability, washer):
        assert await availability.execute(washer.id, at(10), at(11)) is True

    @pytest.mark.asyncio
    async def test_pending_payment_does_not_block(self, availability, create_order, washer):
        await book(create_order, washer.id, at(10), at(11))

        assert await availability.execute(washer.id, at(10, 30), at(11, 30)) is True

    @pytest.mark.asyncio
    async def test_completed_payment_blocks_overlap(
        self, availability, create_order, complete_payment, washer
    ):
        await book_and_pay(create_order, complete_payment, washer.id, at(10), at(11))

        assert await availability.execute(washer.id, at(10, 30), at(11, 30)) is False
        assert await availability.execute(washer.id, at(9, 30), at(10, 1)) is False
        assert await availability.execute(washer.id, at(9), at(12)) is False

    @pytest.mark.asyncio
    async def test_back_to_back_slots_are_available(
        self, availability, create_order, complete_payment, washer
    ):
        await book_and_pay(create_order, complete_payment, washer.id, at(10), at(11))

        assert await availability.execute(washer.id, at(11), at(12)) is True
        assert await availability.execute(washer.id, at(9), at(10)) is True

    @pytest.mark.asyncio
    async def test_other_machine_is_not_affected(
        self, availability, create_order, complete_payment, washer
    ):
        await book_and_pay(create_order, complete_payment, washer.id, at(10), at(11))

        assert await availability.execute("another-machine", at(10), at(11)) is True

    @pytest.mark.asyncio
    async def test_cancelled_orders_are_ignored(self, availability, order_repo, payment_repo):
        await _order(order_repo, payment_repo, "m1", at(10), at(11), status=ORDER_STATUS_CANCELLED)

        assert await availability.execute("m1", at(10), at(11)) is True

    @pytest.mark.asyncio
    async def test_confirmed_order_without_timestamps_is_skipped(
        self, availability, order_repo, payment_repo
    ):
        await _order(order_repo, payment_repo, "m1", None, None)

        assert await availability.execute("m1", at(10), at(11)) is True

    @pytest.mark.asyncio
    async def test_confirmed_order_with_inverted_times_is_skipped(
        self, availability, order_repo, payment_repo
    ):
        await _order(order_repo, payment_repo, "m1", at(11), at(10))

        assert await availability.execute("m1", at(9), at(12)) is True

    @pytest.mark.asyncio
    async def test_requested_range_must_not_be_empty_or_inverted(self, availability):
        with pytest.raises(ValidationError):
            await availability.execute("m1", at(11), at(10))
        with pytest.raises(ValidationError):
            await availability.execute("m1", at(10), at(10))

    @pytest.mark.asyncio
    async def test_excluded_order_does_not_conflict_with_itself(
        self, availability, order_repo, payment_repo
    ):
        order = await _order(order_repo, payment_repo, "m1", at(10), at(11))

        assert await availability.execute("m1", at(10), at(11)) is False
        assert await availability.execute("m1", at(10), at(11), exclude_order_id=order.id) is True

    @pytest.mark.asyncio
    async def test_many_orders_are_checked_in_chunks(self, availability, order_repo, payment_repo):
        for day in range(1, 36):
            await _order(order_repo, payment_repo, "m1", at(10, days=day), at(11, days=day), paid=False)
        await _order(order_repo, payment_repo, "m1", at(10), at(11))

        assert await availability.execute("m1", at(10, 30), at(11)) is False
        assert await availability.execute("m1", at(10, 30, days=3), at(11, days=3)) is True


class TestDegradedMode:
    @pytest.mark.asyncio
    async def test_permission_denied_fails_open_by_default(self, availability, store, order_repo, payment_repo):
        await _order(order_repo, payment_repo, "m1", at(10), at(11))
        store.deny("orders")

        assert await availability.execute("m1", at(10), at(11)) is True

    @pytest.mark.asyncio
    async def test_permission_denied_on_payments_fails_open(
        self, availability, store, order_repo, payment_repo
    ):
        await _order(order_repo, payment_repo, "m1", at(10), at(11))
        store.deny("payments")

        assert await availability.execute("m1", at(10), at(11)) is True

    @pytest.mark.asyncio
    async def test_fail_closed_reports_unavailable(self, store, order_repo, payment_repo):
        checker = CheckAvailabilityUseCase(order_repo, payment_repo, on_permission_denied=FAIL_CLOSED)
        store.deny("orders")

        assert await checker.execute("m1", at(10), at(11)) is False

    @pytest.mark.asyncio
    async def test_other_store_errors_propagate(self, availability, store):
        store.inject_failure("query", "orders", StoreError("unavailable"))

        with pytest.raises(StoreError):
            await availability.execute("m1", at(10), at(11))

    def test_unknown_policy_is_rejected(self, order_repo, payment_repo):
        with pytest.raises(ValueError):
            CheckAvailabilityUseCase(order_repo, payment_repo, on_permission_denied="maybe")
