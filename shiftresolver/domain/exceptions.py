"""
Domain-specific exception hierarchy for the shift resolver.
"""


class ShiftResolverError(Exception):
    """Base class for all application-level errors."""


class InvalidShiftDefinition(ShiftResolverError):
    """Raised when a shift's time-of-day values are missing or unparseable."""


class InvalidAllocation(ShiftResolverError):
    """Raised when an allocation cannot be paired with the given shift."""


class InvalidRange(ShiftResolverError):
    """Raised when a query window does not open before it closes."""


class DanglingShiftReference(ShiftResolverError):
    """Raised when an allocation references a shift that does not exist."""


class ConfigurationError(ShiftResolverError):
    """Raised when a configuration or dataset file cannot be used."""


class InvalidInterval(ShiftResolverError):
    """Raised when a resolved interval does not start before it finishes."""
