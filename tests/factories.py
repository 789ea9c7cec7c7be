"""Test data helpers shared across test modules."""

from datetime import datetime, timedelta, timezone

from machine_booking.application.dtos.booking_dto import BookingResult

# Monday 2026-03-02 08:00 UTC
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0, days: int = 0) -> datetime:
    """A time on the test day (or ``days`` later), UTC."""
    return NOW.replace(hour=hour, minute=minute) + timedelta(days=days)


async def book(create_order, machine_id: str, start: datetime, end: datetime, user_id: str = "user-a") -> BookingResult:
    return await create_order.execute(
        user_id=user_id,
        machine_id=machine_id,
        temperature="warm",
        start=start,
        end=end,
    )


async def book_and_pay(
    create_order,
    complete_payment,
    machine_id: str,
    start: datetime,
    end: datetime,
    user_id: str = "user-a",
) -> BookingResult:
    """Creates a confirmed order: booked and settled."""
    booking = await book(create_order, machine_id, start, end, user_id=user_id)
    await complete_payment.execute(booking.payment_id, "card")
    return booking
