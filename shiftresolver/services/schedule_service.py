"""
Application service the external layer talks to.

The persistence layer loads the current records once through
``ShiftScheduleService.from_records`` and afterwards reports every change via
the ``on_*`` notifications. The service keeps the stores and the resolved
interval index in step; queries go straight to the index through the
``QueryEngine``.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Dict, FrozenSet, Hashable, Iterable, List

from ..domain.exceptions import DanglingShiftReference, ShiftResolverError
from ..domain.interval_index import ResolvedIntervalIndex
from ..domain.models import Allocation, ResolvedInterval, ShiftDefinition
from ..domain.query_engine import QueryEngine
from ..domain.resolver import IntervalResolver
from ..domain.stores import AllocationStore, ShiftDefinitionStore

logger = logging.getLogger(__name__)


class ShiftScheduleService:
    """
    Orchestrates the stores, the resolver, the index and the query engine.

    Writes are serialized so that a store and the index never disagree once
    a notification returns.
    """

    def __init__(
        self,
        shifts: ShiftDefinitionStore,
        allocations: AllocationStore,
        timezone: str = "UTC",
    ) -> None:
        self.shifts = shifts
        self.allocations = allocations
        self.timezone = timezone
        self._write_lock = threading.Lock()
        self._resolver = IntervalResolver(timezone=timezone)
        self._index = ResolvedIntervalIndex(self._resolver, shifts)
        self._queries = QueryEngine(self._index, timezone=timezone)

    @classmethod
    def from_records(
        cls,
        shifts: Iterable[ShiftDefinition],
        allocations: Iterable[Allocation],
        *,
        timezone: str = "UTC",
    ) -> "ShiftScheduleService":
        """
        Build the service and its initial index from a full set of records.

        Raises:
            DanglingShiftReference: If an allocation references an unknown shift
            InvalidShiftDefinition: If a referenced shift cannot be resolved
        """
        shift_store = ShiftDefinitionStore(shifts)
        allocation_list = list(allocations)

        service = cls(shift_store, AllocationStore(), timezone=timezone)
        pairs = [(allocation, service._require_shift(allocation)) for allocation in allocation_list]
        service._index.load(pairs)
        for allocation in allocation_list:
            service.allocations.put(allocation)

        return service

    @property
    def index(self) -> ResolvedIntervalIndex:
        return self._index

    @property
    def queries(self) -> QueryEngine:
        return self._queries

    def on_allocation_created(self, allocation: Allocation) -> ResolvedInterval:
        """Resolve and index a new allocation."""
        return self._store_allocation(allocation)

    def on_allocation_updated(self, allocation: Allocation) -> ResolvedInterval:
        """Re-resolve an allocation whose date, shift or assignees changed."""
        if allocation.id not in self.allocations:
            logger.debug("Update for unknown allocation %r, indexing it as new", allocation.id)
        return self._store_allocation(allocation)

    def on_allocation_deleted(self, allocation_id: Hashable) -> None:
        """Forget an allocation. Unknown ids are ignored."""
        with self._write_lock:
            self.allocations.remove(allocation_id)
            self._index.remove(allocation_id)

    def on_shift_created(self, shift: ShiftDefinition) -> None:
        """
        Register a new shift definition.

        Raises:
            InvalidShiftDefinition: If the shift cannot be resolved
        """
        self._validate_shift(shift)
        with self._write_lock:
            self.shifts.put(shift)

    def on_shift_updated(self, shift: ShiftDefinition) -> int:
        """
        Replace a shift definition and re-resolve every allocation on it.

        The rebuild runs against the new definition before it is stored, so a
        rejected update leaves the stored shift and the index untouched.

        Returns:
            Number of re-resolved allocations
        """
        self._validate_shift(shift)
        with self._write_lock:
            rebuilt = self._index.rebuild_for_shift(shift.id, shift)
            self.shifts.put(shift)
        return rebuilt

    def on_shift_deleted(self, shift_id: Hashable) -> None:
        """
        Remove a shift definition.

        Raises:
            DanglingShiftReference: If allocations still reference the shift
        """
        with self._write_lock:
            referencing = self._index.allocations_for_shift(shift_id)
            if referencing:
                logger.warning(
                    "Refusing to delete shift %r referenced by %d allocation(s)",
                    shift_id, len(referencing),
                )
                raise DanglingShiftReference(
                    f"Shift {shift_id!r} is still referenced by {len(referencing)} allocation(s)"
                )
            self.shifts.remove(shift_id)

    def active_at(self, instant: datetime) -> FrozenSet[Hashable]:
        return self._queries.active_at(instant)

    def overlapping(self, window_start: datetime, window_finish: datetime) -> FrozenSet[Hashable]:
        return self._queries.overlapping(window_start, window_finish)

    def intervals(self) -> List[ResolvedInterval]:
        return self._index.intervals()

    def verify(self) -> List[Hashable]:
        with self._write_lock:
            return self._index.verify()

    def assignees_for(self, allocation_ids: Iterable[Hashable]) -> Dict[Hashable, FrozenSet[Hashable]]:
        """
        Join allocation ids back to their assignees.

        Ids that are no longer stored map to an empty set.
        """
        joined: Dict[Hashable, FrozenSet[Hashable]] = {}
        for allocation_id in allocation_ids:
            allocation = self.allocations.get(allocation_id)
            joined[allocation_id] = allocation.assignees if allocation else frozenset()
        return joined

    def _store_allocation(self, allocation: Allocation) -> ResolvedInterval:
        with self._write_lock:
            shift = self._require_shift(allocation)
            interval = self._index.upsert(allocation, shift)
            self.allocations.put(allocation)
        return interval

    def _require_shift(self, allocation: Allocation) -> ShiftDefinition:
        try:
            return self.shifts.require(allocation.shift_id)
        except DanglingShiftReference:
            logger.warning(
                "Allocation %r references missing shift %r",
                allocation.id, allocation.shift_id,
            )
            raise

    def _validate_shift(self, shift: ShiftDefinition) -> None:
        try:
            self._resolver.validate(shift)
        except ShiftResolverError as exc:
            logger.warning("Rejected shift %r: %s", shift.id, exc)
            raise
