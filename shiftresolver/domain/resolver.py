"""
Resolution of shift definitions into absolute intervals.

This is the single place that knows about midnight rollover: everything
downstream works with absolute half-open intervals only.
"""

import logging
from datetime import date, time, timedelta
from typing import Tuple

import pendulum
from pendulum import DateTime

from .exceptions import InvalidAllocation, InvalidShiftDefinition
from .models import Allocation, ResolvedInterval, ShiftDefinition

logger = logging.getLogger(__name__)


class IntervalResolver:
    """
    Maps (shift definition, calendar date) to an absolute ``[start_at, finish_at)``.

    Algorithm:
    1. Combine the date with the start time
    2. If the finish time is later than the start time, combine it with the same date
    3. Otherwise (rollover, or equal times meaning a full day) combine it with the next date
    4. If a DST gap pushed the start to or past the finish, keep the shift's
       wall-clock length from the shifted start

    Wall-clock times inside a spring-forward gap move forward by the gap.
    Ambiguous times in a fall-back overlap take the later (post-transition)
    offset.

    The result is a pure function of its inputs, so the index can always
    re-derive an interval from scratch.
    """

    def __init__(self, timezone: str = "UTC"):
        self.timezone = pendulum.timezone(timezone)

    def resolve(self, shift: ShiftDefinition, on_date: date) -> Tuple[DateTime, DateTime]:
        """
        Resolve a shift on a date.

        Args:
            shift: The shift definition
            on_date: The calendar date the shift starts on

        Returns:
            Tuple of (start_at, finish_at) instants

        Raises:
            InvalidShiftDefinition: If the shift's times are missing or invalid
        """
        self.validate(shift)

        start_at = self._combine(on_date, shift.start_time)

        if shift.finish_time > shift.start_time:
            finish_at = self._combine(on_date, shift.finish_time)
        else:
            finish_at = self._combine(on_date + timedelta(days=1), shift.finish_time)

        if finish_at <= start_at:
            finish_at = start_at.add(minutes=int(shift.duration().total_seconds() // 60))

        return start_at, finish_at

    def resolve_allocation(
        self,
        allocation: Allocation,
        shift: ShiftDefinition
    ) -> ResolvedInterval:
        """
        Resolve an allocation against the shift it references.

        Raises:
            InvalidAllocation: If the allocation has no date or references another shift
            InvalidShiftDefinition: If the shift cannot be resolved
        """
        if allocation.shift_id != shift.id:
            raise InvalidAllocation(
                f"Allocation {allocation.id!r} references shift {allocation.shift_id!r}, "
                f"not {shift.id!r}"
            )
        if allocation.date is None:
            raise InvalidAllocation(f"Allocation {allocation.id!r} has no date")

        start_at, finish_at = self.resolve(shift, allocation.date)
        logger.debug(
            "Resolved allocation %r on %s to [%s, %s)",
            allocation.id, allocation.date, start_at, finish_at,
        )
        return ResolvedInterval(
            allocation_id=allocation.id,
            start_at=start_at,
            finish_at=finish_at,
        )

    @staticmethod
    def validate(shift: ShiftDefinition) -> None:
        """
        Check that a shift carries usable time-of-day values.

        Raises:
            InvalidShiftDefinition: If a value is missing, not a time, or finer than minutes
        """
        for label, value in (("start_time", shift.start_time), ("finish_time", shift.finish_time)):
            if value is None:
                raise InvalidShiftDefinition(f"Shift {shift.id!r} has no {label}")
            if not isinstance(value, time):
                raise InvalidShiftDefinition(
                    f"Shift {shift.id!r} {label} must be a time of day, got {value!r}"
                )
            if value.second or value.microsecond:
                raise InvalidShiftDefinition(
                    f"Shift {shift.id!r} {label} {value} is finer than minute resolution"
                )
            if value.tzinfo is not None:
                raise InvalidShiftDefinition(
                    f"Shift {shift.id!r} {label} must be a wall-clock time without timezone"
                )

    def _combine(self, on_date: date, at: time) -> DateTime:
        return pendulum.datetime(
            on_date.year,
            on_date.month,
            on_date.day,
            at.hour,
            at.minute,
            tz=self.timezone,
            fold=1,
            raise_on_unknown_times=False,
        )
