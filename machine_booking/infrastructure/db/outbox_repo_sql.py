import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

from sqlalchemy import and_, insert, or_, select, update

from machine_booking.application.interfaces.outbox_repo import OutboxEvent, OutboxRepo
from machine_booking.domain.constants import (
    OUTBOX_STATUS_DONE,
    OUTBOX_STATUS_FAILED,
    OUTBOX_STATUS_IN_PROGRESS,
    OUTBOX_STATUS_NEW,
    OUTBOX_STATUS_RETRY,
)
from machine_booking.infrastructure.db.engine import (
    from_db_datetime,
    session_scope,
    to_db_datetime,
)
from machine_booking.infrastructure.db.retry import with_deadlock_retry
from machine_booking.infrastructure.db.tables import outbox_events

logger = logging.getLogger(__name__)


def _row_to_event(row) -> OutboxEvent:
    data = row._mapping
    return OutboxEvent(
        id=data["id"],
        event_type=data["event_type"],
        aggregate_type=data["aggregate_type"],
        aggregate_id=data["aggregate_id"],
        payload=data["payload"] or {},
        status=data["status"],
        attempts=data["attempts"] or 0,
        next_attempt_at=from_db_datetime(data["next_attempt_at"]),
        locked_by=data["locked_by"],
        lock_expires_at=from_db_datetime(data["lock_expires_at"]),
        error_code=data["error_code"],
        error_message=data["error_message"],
    )


class OutboxRepoSQL(OutboxRepo):
    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    @with_deadlock_retry()
    async def enqueue(
        self,
        event_type: str,
        aggregate_type: str,
        aggregate_id: str,
        payload: dict[str, Any],
        now: datetime,
    ) -> OutboxEvent:
        db_now = to_db_datetime(now)
        stmt = insert(outbox_events).values(
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            payload=payload,
            status=OUTBOX_STATUS_NEW,
            attempts=0,
            next_attempt_at=db_now,
            created_at=db_now,
        )
        async with session_scope(self._session_maker) as session:
            result = await session.execute(stmt)
            event_id = result.inserted_primary_key[0]
        return OutboxEvent(
            id=event_id,
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            payload=payload,
            status=OUTBOX_STATUS_NEW,
            attempts=0,
            next_attempt_at=now,
        )

    async def get_by_id(self, event_id: int) -> OutboxEvent | None:
        async with session_scope(self._session_maker) as session:
            result = await session.execute(
                select(outbox_events).where(outbox_events.c.id == event_id)
            )
            row = result.first()
        return _row_to_event(row) if row else None

    @with_deadlock_retry()
    async def claim_ready(
        self,
        limit: int,
        locked_by: str,
        now: datetime,
        lock_ttl_seconds: int = 30,
    ) -> Sequence[OutboxEvent]:
        db_now = to_db_datetime(now)
        ready = or_(
            and_(
                outbox_events.c.status.in_((OUTBOX_STATUS_NEW, OUTBOX_STATUS_RETRY)),
                or_(
                    outbox_events.c.next_attempt_at.is_(None),
                    outbox_events.c.next_attempt_at <= db_now,
                ),
                or_(
                    outbox_events.c.lock_expires_at.is_(None),
                    outbox_events.c.lock_expires_at <= db_now,
                ),
            ),
            # Lease left behind by a worker that died mid-event.
            and_(
                outbox_events.c.status == OUTBOX_STATUS_IN_PROGRESS,
                or_(
                    outbox_events.c.lock_expires_at.is_(None),
                    outbox_events.c.lock_expires_at <= db_now,
                ),
            ),
        )
        claimed: list[OutboxEvent] = []
        async with session_scope(self._session_maker) as session:
            candidates = await session.execute(
                select(outbox_events.c.id).where(ready).order_by(outbox_events.c.id).limit(limit)
            )
            for (event_id,) in candidates.all():
                # Conditional update so two workers never claim the same event.
                result = await session.execute(
                    update(outbox_events)
                    .where(outbox_events.c.id == event_id, ready)
                    .values(
                        status=OUTBOX_STATUS_IN_PROGRESS,
                        locked_by=locked_by,
                        locked_at=db_now,
                        lock_expires_at=db_now + timedelta(seconds=lock_ttl_seconds),
                        updated_at=db_now,
                    )
                )
                if result.rowcount != 1:
                    continue
                row = (
                    await session.execute(
                        select(outbox_events).where(outbox_events.c.id == event_id)
                    )
                ).first()
                claimed.append(_row_to_event(row))
        return claimed

    async def mark_done(self, event_id: int) -> None:
        await self._set(
            event_id,
            status=OUTBOX_STATUS_DONE,
            locked_by=None,
            lock_expires_at=None,
        )

    async def mark_retry(
        self,
        event_id: int,
        attempts: int,
        next_attempt_at: datetime,
        error_code: str | None,
        error_message: str | None,
    ) -> None:
        await self._set(
            event_id,
            status=OUTBOX_STATUS_RETRY,
            attempts=attempts,
            next_attempt_at=to_db_datetime(next_attempt_at),
            error_code=error_code,
            error_message=error_message,
            locked_by=None,
            lock_expires_at=None,
        )

    async def mark_failed(
        self,
        event_id: int,
        attempts: int,
        error_code: str | None,
        error_message: str | None,
    ) -> None:
        await self._set(
            event_id,
            status=OUTBOX_STATUS_FAILED,
            attempts=attempts,
            error_code=error_code,
            error_message=error_message,
            locked_by=None,
            lock_expires_at=None,
        )
        logger.warning(
            "Outbox event failed permanently - requires manual intervention",
            extra={"event_id": event_id, "attempts": attempts, "error_code": error_code},
        )

    async def list_by_status(self, status: str) -> Sequence[OutboxEvent]:
        async with session_scope(self._session_maker) as session:
            result = await session.execute(
                select(outbox_events)
                .where(outbox_events.c.status == status)
                .order_by(outbox_events.c.id)
            )
            rows = result.all()
        return [_row_to_event(row) for row in rows]

    @with_deadlock_retry()
    async def _set(self, event_id: int, **values: Any) -> None:
        values["updated_at"] = to_db_datetime(datetime.now(timezone.utc))
        async with session_scope(self._session_maker) as session:
            await session.execute(
                update(outbox_events).where(outbox_events.c.id == event_id).values(**values)
            )
