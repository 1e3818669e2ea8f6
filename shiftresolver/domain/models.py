"""
Domain models for shift definitions, allocations and resolved intervals.
"""

from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import FrozenSet, Hashable

import pendulum
from pendulum import DateTime

from .exceptions import InvalidInterval, InvalidShiftDefinition

TIME_OF_DAY_FORMAT = "HH:mm"


def parse_time_of_day(value: object) -> time:
    """
    Parse a wall-clock time of day.

    Accepts ``datetime.time`` instances and ``"HH:MM"`` strings.

    Raises:
        InvalidShiftDefinition: If the value is missing or unparseable
    """
    if value is None:
        raise InvalidShiftDefinition("Time of day is missing")

    if isinstance(value, time):
        return value

    if isinstance(value, str):
        try:
            parsed = pendulum.from_format(value.strip(), TIME_OF_DAY_FORMAT)
        except ValueError as exc:
            raise InvalidShiftDefinition(
                f"Cannot parse time of day {value!r}, expected HH:MM"
            ) from exc
        return time(hour=parsed.hour, minute=parsed.minute)

    raise InvalidShiftDefinition(
        f"Unsupported time of day value {value!r} ({type(value).__name__})"
    )


@dataclass(frozen=True)
class ShiftDefinition:
    """
    A recurring time-of-day template.

    No ordering is enforced between start and finish: a finish time earlier
    than or equal to the start time means the shift runs into the next day.
    Equal times describe a full 24-hour shift.
    """
    id: Hashable
    start_time: time | None
    finish_time: time | None

    @classmethod
    def parse(cls, shift_id: Hashable, start: object, finish: object) -> "ShiftDefinition":
        """Build a shift from ``time`` objects or ``"HH:MM"`` strings."""
        return cls(
            id=shift_id,
            start_time=parse_time_of_day(start),
            finish_time=parse_time_of_day(finish),
        )

    def rolls_over(self) -> bool:
        """Check whether the shift finishes on the following calendar day."""
        self._require_times()
        return self.finish_time <= self.start_time

    def duration(self) -> timedelta:
        """Return the wall-clock length of the shift."""
        self._require_times()
        start = timedelta(hours=self.start_time.hour, minutes=self.start_time.minute)
        finish = timedelta(hours=self.finish_time.hour, minutes=self.finish_time.minute)
        if self.rolls_over():
            finish += timedelta(days=1)
        return finish - start

    def _require_times(self) -> None:
        if self.start_time is None or self.finish_time is None:
            raise InvalidShiftDefinition(f"Shift {self.id!r} is missing a start or finish time")

    def __str__(self) -> str:
        start = self.start_time.strftime("%H:%M") if self.start_time else "??:??"
        finish = self.finish_time.strftime("%H:%M") if self.finish_time else "??:??"
        return f"{self.id} ({start} - {finish})"


@dataclass(frozen=True)
class Allocation:
    """
    A shift assigned to a concrete calendar date.

    ``shift_id`` is a non-owning reference; the shift lives in its own store.
    """
    id: Hashable
    shift_id: Hashable
    date: date | None
    assignees: FrozenSet[Hashable] = field(default_factory=frozenset)

    def __post_init__(self):
        if not isinstance(self.assignees, frozenset):
            object.__setattr__(self, "assignees", frozenset(self.assignees))


@dataclass(frozen=True)
class ResolvedInterval:
    """
    Absolute half-open interval ``[start_at, finish_at)`` of one allocation.

    Invariant: start_at must be before finish_at.
    """
    allocation_id: Hashable
    start_at: DateTime
    finish_at: DateTime

    def __post_init__(self):
        if self.start_at >= self.finish_at:
            raise InvalidInterval(
                f"Start {self.start_at} must be before finish {self.finish_at}"
            )

    def contains(self, instant: DateTime) -> bool:
        """Check if the instant falls inside the interval (finish excluded)."""
        return self.start_at <= instant < self.finish_at

    def overlaps(self, window_start: DateTime, window_finish: DateTime) -> bool:
        """Check if this interval intersects ``[window_start, window_finish)``."""
        return self.start_at < window_finish and self.finish_at > window_start

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.finish_at - self.start_at).total_seconds() / 60)

    def __str__(self) -> str:
        return (
            f"{self.start_at.format('DD.MM.YYYY HH:mm')} - "
            f"{self.finish_at.format('DD.MM.YYYY HH:mm')}"
        )
