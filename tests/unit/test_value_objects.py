"""Money and TimeSlot behaviour."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from machine_booking.domain.value_objects.money import Money
from machine_booking.domain.value_objects.time_slot import TimeSlot, as_utc, minutes_between
from tests.factories import at


class TestTimeSlot:
    def test_back_to_back_slots_do_not_overlap(self):
        first = TimeSlot(at(10), at(11))
        second = TimeSlot(at(11), at(12))

        assert not first.overlaps_with(second)
        assert not second.overlaps_with(first)

    def test_partial_overlap_conflicts_both_ways(self):
        first = TimeSlot(at(10), at(11))
        second = TimeSlot(at(10, 30), at(11, 30))

        assert first.overlaps_with(second)
        assert second.overlaps_with(first)

    def test_contained_slot_overlaps(self):
        assert TimeSlot(at(9), at(12)).overlaps_with(TimeSlot(at(10), at(10, 30)))

    def test_rejects_empty_or_inverted_interval(self):
        with pytest.raises(ValueError):
            TimeSlot(at(10), at(10))
        with pytest.raises(ValueError):
            TimeSlot(at(11), at(10))

    def test_naive_datetimes_are_treated_as_utc(self):
        slot = TimeSlot(datetime(2026, 3, 2, 10, 0), datetime(2026, 3, 2, 11, 0))

        assert slot.start == at(10)
        assert slot.start.tzinfo is not None

    def test_started_and_ended(self):
        slot = TimeSlot(at(10), at(11))

        assert not slot.has_started(at(9, 59))
        assert slot.has_started(at(10))
        assert not slot.has_ended(at(10, 59))
        assert slot.has_ended(at(11))


class TestMinutesBetween:
    def test_truncates_partial_minutes(self):
        assert minutes_between(at(10), at(10, 29) + timedelta(seconds=59)) == 29

    def test_aware_and_naive_mix(self):
        start = datetime(2026, 3, 2, 10, 0)
        end = datetime(2026, 3, 2, 12, 0, tzinfo=timezone(timedelta(hours=1)))

        # 12:00+01:00 is 11:00 UTC
        assert minutes_between(start, end) == 60

    def test_as_utc_converts_offsets(self):
        value = datetime(2026, 3, 2, 18, 0, tzinfo=timezone(timedelta(hours=8)))

        assert as_utc(value) == at(10)


class TestMoney:
    def test_price_for_duration(self):
        assert Money.for_duration(Decimal("2.00"), 60, "MYR").amount == Decimal("2.00")
        assert Money.for_duration(Decimal("4.00"), 45, "MYR").amount == Decimal("3.00")
        assert Money.for_duration(Decimal("2.00"), 180, "MYR").amount == Decimal("6.00")

    def test_price_rounds_half_up_to_cents(self):
        # 1.00 * 31 / 60 = 0.51666...
        assert Money.for_duration(Decimal("1.00"), 31, "MYR").amount == Decimal("0.52")

    def test_discount_is_floored_at_zero(self):
        assert Money(Decimal("12.00"), "MYR").minus_floored(Decimal("5.00")).amount == Decimal("7.00")
        assert Money(Decimal("2.00"), "MYR").minus_floored(Decimal("5.00")).amount == Decimal("0.00")

    def test_rejects_negative_amounts_and_bad_currency(self):
        with pytest.raises(ValueError):
            Money(Decimal("-1"), "MYR")
        with pytest.raises(ValueError):
            Money(Decimal("1"), "RM")
