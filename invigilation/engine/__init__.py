"""Allocation engine: generation, reassignment and day maintenance."""

from .generator import AllocationGenerator, generate_for_date, pick_candidate
from .locks import DEFAULT_LOCKS, DateLocks
from .maintenance import (
    ClearResult,
    LoadDrift,
    clear_day,
    clear_roster,
    exam_dates,
    faculty_allocations,
    reconcile_loads,
    schedule_history,
)
from .reassign import ReassignmentService
from .state import PriorAllocation, RunState

__all__ = [
    "AllocationGenerator",
    "generate_for_date",
    "pick_candidate",
    "DEFAULT_LOCKS",
    "DateLocks",
    "ClearResult",
    "LoadDrift",
    "clear_day",
    "clear_roster",
    "exam_dates",
    "faculty_allocations",
    "reconcile_loads",
    "schedule_history",
    "ReassignmentService",
    "PriorAllocation",
    "RunState",
]
