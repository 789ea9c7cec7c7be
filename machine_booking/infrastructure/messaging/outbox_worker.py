"""Worker that replays saga repair events from the outbox."""

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable
from uuid import uuid4

from machine_booking.application.interfaces.clock import Clock
from machine_booking.application.interfaces.outbox_repo import OutboxEvent, OutboxRepo
from machine_booking.domain.errors import DomainError

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 300

EventHandler = Callable[[OutboxEvent], Awaitable[None]]


class OutboxWorker:
    """
    Processes outbox events asynchronously.

    - configurable polling
    - exponential backoff between retries, capped at ``MAX_BACKOFF_SECONDS``
    - claim with a lease so two workers never run the same event
    - events that exhaust ``max_attempts`` are marked ``FAILED``
    """

    def __init__(
        self,
        outbox_repo: OutboxRepo,
        clock: Clock,
        worker_id: str | None = None,
        poll_interval_seconds: float = 5.0,
        batch_size: int = 10,
        lock_duration_seconds: int = 30,
        max_attempts: int = 5,
        base_backoff_seconds: int = 30,
    ) -> None:
        self._outbox_repo = outbox_repo
        self._clock = clock
        self._worker_id = worker_id or f"worker-{uuid4().hex[:8]}"
        self._poll_interval = poll_interval_seconds
        self._batch_size = batch_size
        self._lock_duration = lock_duration_seconds
        self._max_attempts = max_attempts
        self._base_backoff = base_backoff_seconds
        self._running = False
        self._handlers: dict[str, EventHandler] = {}

    @property
    def worker_id(self) -> str:
        return self._worker_id

    @property
    def is_running(self) -> bool:
        return self._running

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type] = handler
        logger.debug("Outbox handler registered", extra={"event_type": event_type})

    async def start(self) -> None:
        """Polls until ``stop`` is called."""
        self._running = True
        logger.info("OutboxWorker started", extra={"worker_id": self._worker_id})

        while self._running:
            try:
                processed = await self.run_once()
                if processed == 0:
                    await asyncio.sleep(self._poll_interval)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Outbox worker cycle failed", extra={"worker_id": self._worker_id})
                await asyncio.sleep(self._poll_interval)

    async def stop(self) -> None:
        self._running = False
        logger.info("OutboxWorker stopped", extra={"worker_id": self._worker_id})

    async def run_once(self) -> int:
        """
        Claims and processes one batch of ready events.

        Returns:
            Number of events handled successfully.
        """
        events = await self._outbox_repo.claim_ready(
            limit=self._batch_size,
            locked_by=self._worker_id,
            now=self._clock.now(),
            lock_ttl_seconds=self._lock_duration,
        )

        processed = 0
        for event in events:
            if await self._process_event(event):
                processed += 1
        return processed

    async def process_single(self, event_id: int) -> bool:
        event = await self._outbox_repo.get_by_id(event_id)
        if not event:
            logger.warning("Outbox event not found", extra={"event_id": event_id})
            return False
        return await self._process_event(event)

    async def _process_event(self, event: OutboxEvent) -> bool:
        log_extra = {
            "event_id": event.id,
            "event_type": event.event_type,
            "aggregate_id": event.aggregate_id,
        }
        handler = self._handlers.get(event.event_type)
        if not handler:
            logger.error("No handler for outbox event type", extra=log_extra)
            await self._outbox_repo.mark_failed(
                event.id,
                attempts=event.attempts,
                error_code="NO_HANDLER",
                error_message=f"No handler registered for {event.event_type}",
            )
            return False

        try:
            await handler(event)
        except Exception as exc:
            logger.exception("Outbox handler failed", extra=log_extra)
            await self._handle_failure(event, exc)
            return False

        await self._outbox_repo.mark_done(event.id)
        logger.info("Outbox event processed", extra=log_extra)
        return True

    async def _handle_failure(self, event: OutboxEvent, error: Exception) -> None:
        attempts = event.attempts + 1
        error_code = error.code if isinstance(error, DomainError) else type(error).__name__
        error_message = str(error)[:500]

        if attempts >= self._max_attempts:
            logger.error(
                "Outbox event exceeded max attempts",
                extra={"event_id": event.id, "attempts": attempts, "max_attempts": self._max_attempts},
            )
            await self._outbox_repo.mark_failed(
                event.id,
                attempts=attempts,
                error_code=error_code,
                error_message=error_message,
            )
            return

        backoff_seconds = min(self._base_backoff * (2 ** (attempts - 1)), MAX_BACKOFF_SECONDS)
        next_attempt = self._clock.now() + timedelta(seconds=backoff_seconds)
        logger.info(
            "Outbox event retry scheduled",
            extra={
                "event_id": event.id,
                "attempts": attempts,
                "next_attempt_at": next_attempt.isoformat(),
            },
        )
        await self._outbox_repo.mark_retry(
            event.id,
            attempts=attempts,
            next_attempt_at=next_attempt,
            error_code=error_code,
            error_message=error_message,
        )
