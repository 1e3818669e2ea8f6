"""
In-memory stores for shift definitions and allocations.

The persistence layer owns the authoritative records; these stores hold the
snapshot the core resolves against.
"""

import threading
from typing import Dict, Hashable, Iterable, List

from .exceptions import DanglingShiftReference
from .models import Allocation, ShiftDefinition


class ShiftDefinitionStore:
    """Shift definitions keyed by id."""

    def __init__(self, shifts: Iterable[ShiftDefinition] = ()):
        self._lock = threading.Lock()
        self._shifts: Dict[Hashable, ShiftDefinition] = {}
        for shift in shifts:
            self._shifts[shift.id] = shift

    def get(self, shift_id: Hashable) -> ShiftDefinition | None:
        """Return the shift, or None if it is unknown."""
        with self._lock:
            return self._shifts.get(shift_id)

    def require(self, shift_id: Hashable) -> ShiftDefinition:
        """
        Return the shift.

        Raises:
            DanglingShiftReference: If no shift with this id exists
        """
        shift = self.get(shift_id)
        if shift is None:
            raise DanglingShiftReference(f"Shift {shift_id!r} does not exist")
        return shift

    def put(self, shift: ShiftDefinition) -> None:
        with self._lock:
            self._shifts[shift.id] = shift

    def remove(self, shift_id: Hashable) -> None:
        with self._lock:
            self._shifts.pop(shift_id, None)

    def all(self) -> List[ShiftDefinition]:
        with self._lock:
            return list(self._shifts.values())

    def __contains__(self, shift_id: Hashable) -> bool:
        with self._lock:
            return shift_id in self._shifts

    def __len__(self) -> int:
        with self._lock:
            return len(self._shifts)


class AllocationStore:
    """Allocations keyed by id."""

    def __init__(self, allocations: Iterable[Allocation] = ()):
        self._lock = threading.Lock()
        self._allocations: Dict[Hashable, Allocation] = {}
        for allocation in allocations:
            self._allocations[allocation.id] = allocation

    def get(self, allocation_id: Hashable) -> Allocation | None:
        with self._lock:
            return self._allocations.get(allocation_id)

    def put(self, allocation: Allocation) -> None:
        """Insert or replace an allocation."""
        with self._lock:
            self._allocations[allocation.id] = allocation

    def remove(self, allocation_id: Hashable) -> Allocation | None:
        """Remove an allocation; unknown ids are ignored."""
        with self._lock:
            return self._allocations.pop(allocation_id, None)

    def all(self) -> List[Allocation]:
        with self._lock:
            return list(self._allocations.values())

    def __contains__(self, allocation_id: Hashable) -> bool:
        with self._lock:
            return allocation_id in self._allocations

    def __len__(self) -> int:
        with self._lock:
            return len(self._allocations)
