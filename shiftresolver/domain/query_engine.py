"""
Point and range queries over the resolved interval index.

Intervals are half-open: an allocation is active from its start instant up
to, but not including, its finish instant.
"""

from datetime import datetime
from typing import FrozenSet, Hashable, List

import pendulum
from pendulum import DateTime

from .exceptions import InvalidRange
from .interval_index import ResolvedIntervalIndex
from .models import ResolvedInterval


class QueryEngine:
    """
    Read-only queries against a ``ResolvedIntervalIndex``.

    Naive datetimes are interpreted in the engine's timezone, so callers can
    pass wall-clock instants in the schedule's civil timezone.
    """

    def __init__(self, index: ResolvedIntervalIndex, timezone: str = "UTC"):
        self._index = index
        self.timezone = pendulum.timezone(timezone)

    def active_at(self, instant: datetime) -> FrozenSet[Hashable]:
        """
        Return ids of allocations whose interval contains the instant.

        An allocation starting exactly at the instant is active; one
        finishing exactly at it is not.
        """
        at = self._normalize(instant)
        candidates = self._index.scan(at, at, include_finish=True)
        return frozenset(
            interval.allocation_id for interval in candidates if interval.contains(at)
        )

    def overlapping(self, window_start: datetime, window_finish: datetime) -> FrozenSet[Hashable]:
        """
        Return ids of allocations intersecting ``[window_start, window_finish)``.

        Raises:
            InvalidRange: If the window does not open before it closes
        """
        return frozenset(
            interval.allocation_id
            for interval in self.intervals_overlapping(window_start, window_finish)
        )

    def intervals_overlapping(
        self,
        window_start: datetime,
        window_finish: datetime
    ) -> List[ResolvedInterval]:
        """
        Return the intervals intersecting the window, ordered by start.

        Raises:
            InvalidRange: If the window does not open before it closes
        """
        start = self._normalize(window_start)
        finish = self._normalize(window_finish)

        if start >= finish:
            raise InvalidRange(
                f"Window start {start} must be before window finish {finish}"
            )

        candidates = self._index.scan(start, finish)
        return [interval for interval in candidates if interval.overlaps(start, finish)]

    def _normalize(self, instant: datetime) -> DateTime:
        return pendulum.instance(instant, tz=self.timezone)
