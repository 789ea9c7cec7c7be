"""
Resumable saga steps.

Booking and settlement write several documents without a shared transaction.
When a step after the primary write fails, the workflow persists an outbox
event; the handlers below replay that step from the event payload and are
safe to run more than once.
"""

import logging
from datetime import datetime
from typing import Any

from machine_booking.application.interfaces.clock import Clock
from machine_booking.application.interfaces.order_repo import OrderRepo
from machine_booking.application.interfaces.outbox_repo import OutboxEvent, OutboxRepo
from machine_booking.application.interfaces.token_repo import TokenRepo
from machine_booking.domain.constants import (
    OUTBOX_EVENT_LINK_ORDER_PAYMENT,
    OUTBOX_EVENT_MINT_REWARD_TOKEN,
    OUTBOX_EVENT_PROMOTE_ORDER_STATUS,
)
from machine_booking.domain.entities.order import status_for_start
from machine_booking.domain.entities.token import Token
from machine_booking.domain.errors import OrderNotFoundError, ValidationError

logger = logging.getLogger(__name__)


async def schedule_repair(
    outbox_repo: OutboxRepo,
    event_type: str,
    order_id: str,
    payload: dict[str, Any],
    now: datetime,
) -> bool:
    """Persists a repair event; returns False if even that write failed."""
    try:
        event = await outbox_repo.enqueue(
            event_type=event_type,
            aggregate_type="order",
            aggregate_id=order_id,
            payload=payload,
            now=now,
        )
    except Exception:
        logger.exception(
            "Could not persist saga repair event",
            extra={"event_type": event_type, "order_id": order_id},
        )
        return False
    logger.info(
        "Saga repair scheduled",
        extra={"event_id": event.id, "event_type": event_type, "order_id": order_id},
    )
    return True


async def mint_reward_token(token_repo: TokenRepo, user_id: str, order_id: str) -> Token:
    """Creates the order's reward token unless one already exists."""
    existing = await token_repo.find_by_order(order_id)
    if existing is not None:
        return existing
    token = Token(user_id=user_id, order_id=order_id, used=False)
    await token_repo.add(token)
    return token


def _required(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not value:
        raise ValidationError(key, "missing from repair event payload")
    return value


class SagaRepairHandlers:
    """Outbox handlers, one per repair event type."""

    def __init__(self, order_repo: OrderRepo, token_repo: TokenRepo, clock: Clock) -> None:
        self._order_repo = order_repo
        self._token_repo = token_repo
        self._clock = clock

    def handlers(self) -> dict:
        return {
            OUTBOX_EVENT_LINK_ORDER_PAYMENT: self.link_order_payment,
            OUTBOX_EVENT_PROMOTE_ORDER_STATUS: self.promote_order_status,
            OUTBOX_EVENT_MINT_REWARD_TOKEN: self.mint_reward_token,
        }

    async def link_order_payment(self, event: OutboxEvent) -> None:
        order_id = _required(event.payload, "order_id")
        payment_id = _required(event.payload, "payment_id")
        order = await self._order_repo.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.payment_id == payment_id:
            return
        await self._order_repo.set_payment_id(order_id, payment_id, self._clock.now())
        logger.info(
            "Order linked to payment by repair",
            extra={"order_id": order_id, "payment_id": payment_id},
        )

    async def promote_order_status(self, event: OutboxEvent) -> None:
        order_id = _required(event.payload, "order_id")
        order = await self._order_repo.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        now = self._clock.now()
        order.status = status_for_start(order.start_time, now)
        # The slot may have ended while the event waited.
        status = order.refreshed_status(now)
        await self._order_repo.update_status(order_id, status, now)

    async def mint_reward_token(self, event: OutboxEvent) -> None:
        order_id = _required(event.payload, "order_id")
        user_id = event.payload.get("user_id")
        if not user_id:
            # Settled while the order was unreadable: the owner lives on the order.
            order = await self._order_repo.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            user_id = order.user_id
        if not user_id:
            raise ValidationError("user_id", "order has no owner")
        token = await mint_reward_token(self._token_repo, user_id, order_id)
        logger.info(
            "Reward token minted by repair",
            extra={"order_id": order_id, "user_id": user_id, "token_id": token.id},
        )
