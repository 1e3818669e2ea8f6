"""
Materialized index of resolved intervals.

Every entry is the resolver's output for an allocation's current shift and
date. The index never computes anything on its own: writes go through the
resolver, reads scan a start-sorted structure.
"""

import logging
import threading
from bisect import bisect_left, bisect_right
from datetime import timedelta
from typing import Dict, Hashable, Iterable, List, Set, Tuple

from pendulum import DateTime

from .exceptions import ShiftResolverError
from .models import Allocation, ResolvedInterval, ShiftDefinition
from .resolver import IntervalResolver
from .stores import ShiftDefinitionStore

logger = logging.getLogger(__name__)


class ResolvedIntervalIndex:
    """
    Maps allocation ids to resolved intervals and answers overlap scans.

    Layout:
    - ``_entries``: allocation id -> ResolvedInterval
    - ``_starts`` / ``_ids``: parallel lists sorted by start instant
    - ``_by_shift``: shift id -> allocation ids, so a shift change only
      touches its own allocations

    Overlap scans bisect the start list. An interval can only reach into a
    window if it starts less than one "longest interval" before the window,
    so the scanned slice stays small.

    All mutations and scans run under one lock; batch writes resolve every
    entry before publishing any of them.
    """

    def __init__(self, resolver: IntervalResolver, shifts: ShiftDefinitionStore):
        self._resolver = resolver
        self._shifts = shifts
        self._lock = threading.RLock()
        self._entries: Dict[Hashable, ResolvedInterval] = {}
        self._sources: Dict[Hashable, Allocation] = {}
        self._by_shift: Dict[Hashable, Set[Hashable]] = {}
        self._starts: List[DateTime] = []
        self._ids: List[Hashable] = []
        self._longest = timedelta(0)

    def upsert(self, allocation: Allocation, shift: ShiftDefinition) -> ResolvedInterval:
        """
        Resolve an allocation and replace any previous entry for it.

        A failed resolution leaves the previous entry untouched.

        Raises:
            InvalidShiftDefinition: If the shift cannot be resolved
            InvalidAllocation: If the allocation does not match the shift
        """
        try:
            interval = self._resolver.resolve_allocation(allocation, shift)
        except ShiftResolverError as exc:
            logger.warning("Rejected allocation %r: %s", allocation.id, exc)
            raise

        with self._lock:
            self._apply(allocation, interval)

        logger.debug("Indexed allocation %r as %s", allocation.id, interval)
        return interval

    def remove(self, allocation_id: Hashable) -> None:
        """Drop an allocation's entry. Unknown ids are ignored."""
        with self._lock:
            if allocation_id not in self._entries:
                return
            self._unlink(allocation_id)

        logger.debug("Removed allocation %r from index", allocation_id)

    def rebuild_for_shift(self, shift_id: Hashable, shift: ShiftDefinition | None = None) -> int:
        """
        Re-resolve every allocation referencing a shift.

        Without ``shift`` the current definition is read from the shift store;
        passing a new definition lets callers publish it to the store only
        once the rebuild succeeded. Either all affected entries are replaced
        or, if any resolution fails, none are.

        Returns:
            Number of re-resolved allocations

        Raises:
            DanglingShiftReference: If the shift does not exist
            InvalidShiftDefinition: If the shift cannot be resolved
        """
        if shift is None:
            shift = self._shifts.require(shift_id)

        with self._lock:
            affected = [self._sources[allocation_id] for allocation_id in self._by_shift.get(shift_id, ())]
            staged = self._stage((allocation, shift) for allocation in affected)
            for allocation, interval in staged:
                self._apply(allocation, interval)

        logger.debug("Rebuilt %d allocation(s) for shift %r", len(staged), shift_id)
        return len(staged)

    def load(self, pairs: Iterable[Tuple[Allocation, ShiftDefinition]]) -> int:
        """
        Replace the whole index with freshly resolved entries.

        Returns:
            Number of indexed allocations
        """
        with self._lock:
            staged = self._stage(pairs)
            self._clear()
            for allocation, interval in staged:
                self._apply(allocation, interval)

        logger.info("Loaded %d resolved interval(s)", len(staged))
        return len(staged)

    def allocations_for_shift(self, shift_id: Hashable) -> List[Hashable]:
        """Return ids of indexed allocations referencing the shift."""
        with self._lock:
            return list(self._by_shift.get(shift_id, ()))

    def get(self, allocation_id: Hashable) -> ResolvedInterval | None:
        with self._lock:
            return self._entries.get(allocation_id)

    def intervals(self) -> List[ResolvedInterval]:
        """Return every entry ordered by start instant."""
        with self._lock:
            return [self._entries[allocation_id] for allocation_id in self._ids]

    def scan(
        self,
        window_start: DateTime,
        window_finish: DateTime,
        *,
        include_finish: bool = False
    ) -> List[ResolvedInterval]:
        """
        Return candidate intervals for a window, captured atomically.

        Candidates start after ``window_start - longest`` and before
        ``window_finish`` (or at it, with ``include_finish``). Callers apply
        the exact overlap test.
        """
        with self._lock:
            lo = bisect_right(self._starts, window_start - self._longest)
            if include_finish:
                hi = bisect_right(self._starts, window_finish)
            else:
                hi = bisect_left(self._starts, window_finish)
            return [self._entries[allocation_id] for allocation_id in self._ids[lo:hi]]

    def verify(self) -> List[Hashable]:
        """
        Re-derive every entry from the current shift store.

        Returns:
            Ids of allocations whose indexed interval differs from a fresh
            resolution, or whose shift can no longer be resolved
        """
        drifted: List[Hashable] = []

        with self._lock:
            for allocation_id, allocation in self._sources.items():
                shift = self._shifts.get(allocation.shift_id)
                if shift is None:
                    drifted.append(allocation_id)
                    continue
                try:
                    fresh = self._resolver.resolve_allocation(allocation, shift)
                except ShiftResolverError:
                    drifted.append(allocation_id)
                    continue
                if fresh != self._entries[allocation_id]:
                    drifted.append(allocation_id)

        if drifted:
            logger.warning("Index drift detected for %d allocation(s)", len(drifted))
        return drifted

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, allocation_id: Hashable) -> bool:
        with self._lock:
            return allocation_id in self._entries

    def _stage(
        self,
        pairs: Iterable[Tuple[Allocation, ShiftDefinition]]
    ) -> List[Tuple[Allocation, ResolvedInterval]]:
        staged: List[Tuple[Allocation, ResolvedInterval]] = []
        for allocation, shift in pairs:
            try:
                staged.append((allocation, self._resolver.resolve_allocation(allocation, shift)))
            except ShiftResolverError as exc:
                logger.warning("Rejected allocation %r: %s", allocation.id, exc)
                raise
        return staged

    def _apply(self, allocation: Allocation, interval: ResolvedInterval) -> None:
        if allocation.id in self._entries:
            self._unlink(allocation.id)

        position = bisect_right(self._starts, interval.start_at)
        self._starts.insert(position, interval.start_at)
        self._ids.insert(position, allocation.id)

        self._entries[allocation.id] = interval
        self._sources[allocation.id] = allocation
        self._by_shift.setdefault(allocation.shift_id, set()).add(allocation.id)
        self._longest = max(self._longest, interval.finish_at - interval.start_at)

    def _unlink(self, allocation_id: Hashable) -> None:
        interval = self._entries.pop(allocation_id)
        allocation = self._sources.pop(allocation_id)

        position = bisect_left(self._starts, interval.start_at)
        while self._ids[position] != allocation_id:
            position += 1
        del self._starts[position]
        del self._ids[position]

        siblings = self._by_shift[allocation.shift_id]
        siblings.discard(allocation_id)
        if not siblings:
            del self._by_shift[allocation.shift_id]

    def _clear(self) -> None:
        self._entries.clear()
        self._sources.clear()
        self._by_shift.clear()
        self._starts.clear()
        self._ids.clear()
        self._longest = timedelta(0)
