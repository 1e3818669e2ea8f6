"""
Tests for the interval resolver.
"""

from datetime import date, time, timedelta

import pendulum
import pytest

from shiftresolver.domain.exceptions import InvalidAllocation, InvalidShiftDefinition
from shiftresolver.domain.models import Allocation, ShiftDefinition
from shiftresolver.domain.resolver import IntervalResolver

SAME_DAY_SHIFTS = [
    ShiftDefinition("early", time(8, 0), time(16, 0)),
    ShiftDefinition("short", time(12, 15), time(12, 45)),
    ShiftDefinition("late", time(0, 0), time(23, 59)),
]

ROLLOVER_SHIFTS = [
    ShiftDefinition("night", time(22, 0), time(6, 0)),
    ShiftDefinition("evening", time(18, 0), time(0, 0)),
    ShiftDefinition("full", time(9, 0), time(9, 0)),
    ShiftDefinition("midnight", time(0, 0), time(0, 0)),
    ShiftDefinition("long", time(6, 30), time(6, 0)),
]

DATES = [date(2016, 1, 1), date(2016, 2, 29), date(2016, 12, 31)]


class TestIntervalResolver:
    """Tests for IntervalResolver."""

    def test_day_shift(self):
        resolver = IntervalResolver()
        shift = ShiftDefinition("A", time(8, 0), time(16, 0))

        start_at, finish_at = resolver.resolve(shift, date(2016, 1, 1))

        assert start_at == pendulum.parse("2016-01-01 08:00", tz="UTC")
        assert finish_at == pendulum.parse("2016-01-01 16:00", tz="UTC")

    def test_night_shift_finishes_next_day(self):
        resolver = IntervalResolver()
        shift = ShiftDefinition("B", time(22, 0), time(6, 0))

        start_at, finish_at = resolver.resolve(shift, date(2016, 1, 1))

        assert start_at == pendulum.parse("2016-01-01 22:00", tz="UTC")
        assert finish_at == pendulum.parse("2016-01-02 06:00", tz="UTC")

    def test_equal_times_resolve_to_full_day(self):
        resolver = IntervalResolver()
        shift = ShiftDefinition("full", time(9, 0), time(9, 0))

        start_at, finish_at = resolver.resolve(shift, date(2016, 1, 1))

        assert finish_at - start_at == timedelta(hours=24)
        assert finish_at == pendulum.parse("2016-01-02 09:00", tz="UTC")

    @pytest.mark.parametrize("shift", SAME_DAY_SHIFTS, ids=lambda s: str(s.id))
    @pytest.mark.parametrize("on_date", DATES, ids=str)
    def test_same_day_shifts_stay_on_date(self, shift, on_date):
        start_at, finish_at = IntervalResolver().resolve(shift, on_date)

        assert start_at.date() == on_date
        assert finish_at.date() == on_date
        assert finish_at - start_at == shift.duration()

    @pytest.mark.parametrize("shift", ROLLOVER_SHIFTS, ids=lambda s: str(s.id))
    @pytest.mark.parametrize("on_date", DATES, ids=str)
    def test_rollover_shifts_finish_next_day(self, shift, on_date):
        start_at, finish_at = IntervalResolver().resolve(shift, on_date)

        assert start_at.date() == on_date
        assert finish_at.date() == on_date + timedelta(days=1)
        assert finish_at - start_at == shift.duration()
        assert start_at < finish_at

    def test_uses_configured_timezone(self):
        resolver = IntervalResolver(timezone="Europe/Berlin")
        shift = ShiftDefinition("A", time(8, 0), time(16, 0))

        start_at, _ = resolver.resolve(shift, date(2016, 1, 1))

        assert start_at.timezone_name == "Europe/Berlin"
        assert start_at == pendulum.parse("2016-01-01 07:00", tz="UTC")

    def test_resolution_is_deterministic(self):
        resolver = IntervalResolver()
        shift = ShiftDefinition("B", time(22, 0), time(6, 0))

        assert resolver.resolve(shift, date(2016, 1, 1)) == resolver.resolve(shift, date(2016, 1, 1))

    @pytest.mark.parametrize(
        "start,finish",
        [
            (None, time(6, 0)),
            (time(22, 0), None),
            ("22:00", time(6, 0)),
            (time(22, 0, 30), time(6, 0)),
        ],
    )
    def test_invalid_shift_raises(self, start, finish):
        shift = ShiftDefinition("bad", start, finish)

        with pytest.raises(InvalidShiftDefinition):
            IntervalResolver().resolve(shift, date(2016, 1, 1))

    def test_resolve_allocation(self):
        shift = ShiftDefinition("B", time(22, 0), time(6, 0))
        allocation = Allocation(7, "B", date(2016, 1, 1), assignees={"alice"})

        interval = IntervalResolver().resolve_allocation(allocation, shift)

        assert interval.allocation_id == 7
        assert interval.start_at == pendulum.parse("2016-01-01 22:00", tz="UTC")
        assert interval.finish_at == pendulum.parse("2016-01-02 06:00", tz="UTC")

    def test_resolve_allocation_rejects_other_shift(self):
        shift = ShiftDefinition("A", time(8, 0), time(16, 0))
        allocation = Allocation(7, "B", date(2016, 1, 1))

        with pytest.raises(InvalidAllocation):
            IntervalResolver().resolve_allocation(allocation, shift)

    def test_resolve_allocation_requires_date(self):
        shift = ShiftDefinition("A", time(8, 0), time(16, 0))
        allocation = Allocation(7, "A", None)

        with pytest.raises(InvalidAllocation, match="has no date"):
            IntervalResolver().resolve_allocation(allocation, shift)


class TestDaylightSavingTime:
    """Resolution across Europe/London transitions in 2016.

    Clocks went forward on 2016-03-27 at 01:00 GMT and back on 2016-10-30
    at 02:00 BST.
    """

    @staticmethod
    def _minutes(start_at, finish_at) -> int:
        return (finish_at.int_timestamp - start_at.int_timestamp) // 60

    def test_shift_inside_spring_gap_moves_forward(self):
        """01:30-02:00 does not exist that night; it runs 02:30-03:00 BST instead."""
        resolver = IntervalResolver(timezone="Europe/London")
        shift = ShiftDefinition("gap", time(1, 30), time(2, 0))

        start_at, finish_at = resolver.resolve(shift, date(2016, 3, 27))

        assert start_at == pendulum.parse("2016-03-27 01:30", tz="UTC")
        assert finish_at == pendulum.parse("2016-03-27 02:00", tz="UTC")
        assert self._minutes(start_at, finish_at) == 30

    def test_gap_shift_resolves_to_valid_interval(self):
        resolver = IntervalResolver(timezone="Europe/London")
        shift = ShiftDefinition("gap", time(1, 30), time(2, 0))

        interval = resolver.resolve_allocation(Allocation(1, "gap", date(2016, 3, 27)), shift)

        assert interval.start_at < interval.finish_at
        assert interval.duration_minutes() == 30

    def test_shift_spanning_spring_gap_is_shorter(self):
        resolver = IntervalResolver(timezone="Europe/London")

        start_at, finish_at = resolver.resolve(
            ShiftDefinition("early", time(0, 30), time(3, 0)), date(2016, 3, 27)
        )

        assert start_at == pendulum.parse("2016-03-27 00:30", tz="UTC")
        assert self._minutes(start_at, finish_at) == 90

    def test_night_shift_over_spring_forward(self):
        resolver = IntervalResolver(timezone="Europe/London")

        start_at, finish_at = resolver.resolve(
            ShiftDefinition("night", time(22, 0), time(6, 0)), date(2016, 3, 26)
        )

        assert self._minutes(start_at, finish_at) == 7 * 60
        assert finish_at.hour == 6

    def test_full_day_over_fall_back_lasts_25_hours(self):
        resolver = IntervalResolver(timezone="Europe/London")

        start_at, finish_at = resolver.resolve(
            ShiftDefinition("full", time(22, 0), time(22, 0)), date(2016, 10, 29)
        )

        assert start_at == pendulum.parse("2016-10-29 21:00", tz="UTC")
        assert finish_at == pendulum.parse("2016-10-30 22:00", tz="UTC")
        assert self._minutes(start_at, finish_at) == 25 * 60

    def test_ambiguous_times_take_later_offset(self):
        resolver = IntervalResolver(timezone="Europe/London")

        start_at, finish_at = resolver.resolve(
            ShiftDefinition("repeat", time(1, 30), time(1, 45)), date(2016, 10, 30)
        )

        assert start_at == pendulum.parse("2016-10-30 01:30", tz="UTC")
        assert self._minutes(start_at, finish_at) == 15
