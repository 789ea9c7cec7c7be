"""OutboxWorker replaying saga repair events."""

from datetime import timedelta

import pytest

from machine_booking.application.interfaces.document_store import StoreError
from machine_booking.application.use_cases.saga_repair import SagaRepairHandlers
from machine_booking.domain.constants import (
    ORDER_STATUS_ACTIVE,
    OUTBOX_EVENT_LINK_ORDER_PAYMENT,
    OUTBOX_EVENT_MINT_REWARD_TOKEN,
    OUTBOX_EVENT_PROMOTE_ORDER_STATUS,
    OUTBOX_STATUS_DONE,
    OUTBOX_STATUS_FAILED,
    OUTBOX_STATUS_RETRY,
)
from machine_booking.infrastructure.messaging.outbox_worker import OutboxWorker
from tests.factories import NOW, at, book


@pytest.fixture
def worker(outbox_repo, order_repo, token_repo, clock) -> OutboxWorker:
    worker = OutboxWorker(
        outbox_repo=outbox_repo,
        clock=clock,
        worker_id="worker-test",
        max_attempts=3,
        base_backoff_seconds=30,
    )
    for event_type, handler in SagaRepairHandlers(order_repo, token_repo, clock).handlers().items():
        worker.register_handler(event_type, handler)
    return worker


async def _enqueue(outbox_repo, event_type, payload):
    return await outbox_repo.enqueue(
        event_type=event_type,
        aggregate_type="order",
        aggregate_id=payload.get("order_id", ""),
        payload=payload,
        now=NOW,
    )


class TestRepairs:
    @pytest.mark.asyncio
    async def test_links_order_to_payment(self, worker, create_order, washer, store, order_repo, outbox_repo):
        store.inject_failure("update", "orders", StoreError("unavailable"))
        booking = await book(create_order, washer.id, at(10), at(11))
        assert booking.linkage_complete is False

        processed = await worker.run_once()

        assert processed == 1
        assert (await order_repo.get(booking.order_id)).payment_id == booking.payment_id
        assert len(await outbox_repo.list_by_status(OUTBOX_STATUS_DONE)) == 1

    @pytest.mark.asyncio
    async def test_promotes_order_status(self, worker, create_order, washer, order_repo, outbox_repo, clock):
        booking = await book(create_order, washer.id, at(10), at(11))
        await _enqueue(outbox_repo, OUTBOX_EVENT_PROMOTE_ORDER_STATUS, {"order_id": booking.order_id})
        clock.set_time(at(10, 30))

        assert await worker.run_once() == 1
        assert (await order_repo.get(booking.order_id)).status == ORDER_STATUS_ACTIVE

    @pytest.mark.asyncio
    async def test_mint_reads_owner_from_order_when_payload_has_none(
        self, worker, create_order, washer, outbox_repo, token_repo
    ):
        booking = await book(create_order, washer.id, at(10), at(11), user_id="user-b")
        await _enqueue(outbox_repo, OUTBOX_EVENT_MINT_REWARD_TOKEN, {"order_id": booking.order_id})

        assert await worker.run_once() == 1

        token = await token_repo.find_by_order(booking.order_id)
        assert token.user_id == "user-b"

    @pytest.mark.asyncio
    async def test_mint_is_not_duplicated(self, worker, outbox_repo, token_repo, store):
        payload = {"order_id": "order-1", "user_id": "user-a"}
        await _enqueue(outbox_repo, OUTBOX_EVENT_MINT_REWARD_TOKEN, payload)
        await _enqueue(outbox_repo, OUTBOX_EVENT_MINT_REWARD_TOKEN, payload)

        assert await worker.run_once() == 2
        assert len(store.documents("tokens")) == 1
        token = await token_repo.find_by_order("order-1")
        assert token.user_id == "user-a"
        assert token.used is False


class TestAbandonedClaims:
    @pytest.mark.asyncio
    async def test_event_of_crashed_worker_is_replayed_after_lease_expiry(
        self, worker, outbox_repo, token_repo, clock
    ):
        payload = {"order_id": "order-1", "user_id": "user-a"}
        event = await _enqueue(outbox_repo, OUTBOX_EVENT_MINT_REWARD_TOKEN, payload)
        claimed = await outbox_repo.claim_ready(limit=10, locked_by="crashed", now=NOW, lock_ttl_seconds=30)
        assert [e.id for e in claimed] == [event.id]

        # Lease still held by the dead worker
        assert await worker.run_once() == 0

        clock.advance(seconds=30)
        assert await worker.run_once() == 1

        assert (await outbox_repo.get_by_id(event.id)).status == OUTBOX_STATUS_DONE
        assert await token_repo.find_by_order("order-1") is not None

    @pytest.mark.asyncio
    async def test_done_and_failed_events_are_never_reclaimed(self, outbox_repo):
        done = await _enqueue(outbox_repo, OUTBOX_EVENT_MINT_REWARD_TOKEN, {"order_id": "o1"})
        failed = await _enqueue(outbox_repo, OUTBOX_EVENT_MINT_REWARD_TOKEN, {"order_id": "o2"})
        await outbox_repo.mark_done(done.id)
        await outbox_repo.mark_failed(failed.id, attempts=5, error_code="X", error_message="x")

        later = NOW + timedelta(days=1)
        assert await outbox_repo.claim_ready(limit=10, locked_by="w", now=later) == []


class TestFailures:
    @pytest.mark.asyncio
    async def test_failure_schedules_retry_with_backoff(self, worker, outbox_repo, clock):
        event = await _enqueue(outbox_repo, OUTBOX_EVENT_PROMOTE_ORDER_STATUS, {"order_id": "missing"})

        assert await worker.run_once() == 0

        stored = await outbox_repo.get_by_id(event.id)
        assert stored.status == OUTBOX_STATUS_RETRY
        assert stored.attempts == 1
        assert stored.error_code == "ORDER_NOT_FOUND"
        assert stored.next_attempt_at == NOW + timedelta(seconds=30)

        # Not ready yet
        assert await worker.run_once() == 0
        assert (await outbox_repo.get_by_id(event.id)).attempts == 1

        clock.advance(seconds=30)
        await worker.run_once()
        stored = await outbox_repo.get_by_id(event.id)
        assert stored.attempts == 2
        assert stored.next_attempt_at == clock.now() + timedelta(seconds=60)

    @pytest.mark.asyncio
    async def test_event_fails_after_max_attempts(self, worker, outbox_repo, clock):
        event = await _enqueue(outbox_repo, OUTBOX_EVENT_LINK_ORDER_PAYMENT, {"order_id": "missing", "payment_id": "p"})

        for _ in range(3):
            await worker.run_once()
            clock.advance(seconds=300)

        stored = await outbox_repo.get_by_id(event.id)
        assert stored.status == OUTBOX_STATUS_FAILED
        assert stored.attempts == 3

    @pytest.mark.asyncio
    async def test_backoff_is_capped(self, outbox_repo, clock):
        worker = OutboxWorker(outbox_repo=outbox_repo, clock=clock, max_attempts=10, base_backoff_seconds=200)

        async def broken(event):
            raise RuntimeError("boom")

        worker.register_handler("BROKEN", broken)
        event = await _enqueue(outbox_repo, "BROKEN", {})
        await worker.run_once()
        clock.advance(seconds=200)
        await worker.run_once()

        stored = await outbox_repo.get_by_id(event.id)
        assert stored.error_code == "RuntimeError"
        assert stored.next_attempt_at == clock.now() + timedelta(seconds=300)

    @pytest.mark.asyncio
    async def test_missing_payload_key(self, worker, outbox_repo):
        event = await _enqueue(outbox_repo, OUTBOX_EVENT_MINT_REWARD_TOKEN, {"user_id": "user-a"})

        await worker.run_once()

        assert (await outbox_repo.get_by_id(event.id)).error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_event_type_fails_immediately(self, worker, outbox_repo):
        event = await _enqueue(outbox_repo, "SOMETHING_ELSE", {"order_id": "order-1"})

        assert await worker.run_once() == 0

        stored = await outbox_repo.get_by_id(event.id)
        assert stored.status == OUTBOX_STATUS_FAILED
        assert stored.error_code == "NO_HANDLER"

    @pytest.mark.asyncio
    async def test_process_single_unknown_event(self, worker):
        assert await worker.process_single(999) is False
