"""
Domain layer - Pure resolution and query logic without external dependencies.
"""

from .exceptions import (
    ConfigurationError,
    DanglingShiftReference,
    InvalidAllocation,
    InvalidInterval,
    InvalidRange,
    InvalidShiftDefinition,
    ShiftResolverError,
)
from .interval_index import ResolvedIntervalIndex
from .models import Allocation, ResolvedInterval, ShiftDefinition, parse_time_of_day
from .query_engine import QueryEngine
from .resolver import IntervalResolver
from .stores import AllocationStore, ShiftDefinitionStore

__all__ = [
    "Allocation",
    "AllocationStore",
    "ConfigurationError",
    "DanglingShiftReference",
    "IntervalResolver",
    "InvalidAllocation",
    "InvalidInterval",
    "InvalidRange",
    "InvalidShiftDefinition",
    "QueryEngine",
    "ResolvedInterval",
    "ResolvedIntervalIndex",
    "ShiftDefinition",
    "ShiftDefinitionStore",
    "ShiftResolverError",
    "parse_time_of_day",
]
