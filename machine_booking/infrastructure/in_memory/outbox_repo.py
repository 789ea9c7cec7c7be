from datetime import datetime, timedelta
from typing import Any, Sequence

from machine_booking.application.interfaces.outbox_repo import OutboxEvent, OutboxRepo
from machine_booking.domain.constants import (
    OUTBOX_STATUS_DONE,
    OUTBOX_STATUS_FAILED,
    OUTBOX_STATUS_IN_PROGRESS,
    OUTBOX_STATUS_NEW,
    OUTBOX_STATUS_RETRY,
)


class InMemoryOutboxRepo(OutboxRepo):
    def __init__(self) -> None:
        self._events: dict[int, OutboxEvent] = {}
        self._next_id = 1

    async def enqueue(
        self,
        event_type: str,
        aggregate_type: str,
        aggregate_id: str,
        payload: dict[str, Any],
        now: datetime,
    ) -> OutboxEvent:
        event = OutboxEvent(
            id=self._next_id,
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            payload=dict(payload),
            status=OUTBOX_STATUS_NEW,
            attempts=0,
            next_attempt_at=now,
        )
        self._events[self._next_id] = event
        self._next_id += 1
        return event

    async def get_by_id(self, event_id: int) -> OutboxEvent | None:
        return self._events.get(event_id)

    async def claim_ready(
        self,
        limit: int,
        locked_by: str,
        now: datetime,
        lock_ttl_seconds: int = 30,
    ) -> Sequence[OutboxEvent]:
        claimed: list[OutboxEvent] = []
        for event in sorted(self._events.values(), key=lambda e: e.id):
            if len(claimed) >= limit:
                break
            if event.lock_expires_at and event.lock_expires_at > now:
                continue
            # An expired IN_PROGRESS lease belongs to a worker that died mid-event.
            abandoned = event.status == OUTBOX_STATUS_IN_PROGRESS
            if not abandoned and event.status not in {OUTBOX_STATUS_NEW, OUTBOX_STATUS_RETRY}:
                continue
            if not abandoned and event.next_attempt_at and event.next_attempt_at > now:
                continue
            event.locked_by = locked_by
            event.lock_expires_at = now + timedelta(seconds=lock_ttl_seconds)
            event.status = OUTBOX_STATUS_IN_PROGRESS
            claimed.append(event)
        return claimed

    async def mark_done(self, event_id: int) -> None:
        event = self._events.get(event_id)
        if not event:
            return
        event.status = OUTBOX_STATUS_DONE
        event.locked_by = None
        event.lock_expires_at = None

    async def mark_retry(
        self,
        event_id: int,
        attempts: int,
        next_attempt_at: datetime,
        error_code: str | None,
        error_message: str | None,
    ) -> None:
        event = self._events.get(event_id)
        if not event:
            return
        event.status = OUTBOX_STATUS_RETRY
        event.attempts = attempts
        event.next_attempt_at = next_attempt_at
        event.error_code = error_code
        event.error_message = error_message
        event.locked_by = None
        event.lock_expires_at = None

    async def mark_failed(
        self,
        event_id: int,
        attempts: int,
        error_code: str | None,
        error_message: str | None,
    ) -> None:
        event = self._events.get(event_id)
        if not event:
            return
        event.status = OUTBOX_STATUS_FAILED
        event.attempts = attempts
        event.error_code = error_code
        event.error_message = error_message
        event.locked_by = None
        event.lock_expires_at = None

    async def list_by_status(self, status: str) -> Sequence[OutboxEvent]:
        return [event for event in self._events.values() if event.status == status]
