"""
Service layer helpers that orchestrate stores, index and queries.
"""

from .schedule_service import ShiftScheduleService

__all__ = ["ShiftScheduleService"]
