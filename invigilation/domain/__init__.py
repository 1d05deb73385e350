"""Domain models and data access layer."""

from .models import (
    ACTIVE_STATUSES,
    ASSIGNED,
    CANCELLED,
    PENDING,
    REPLACED,
    Allocation,
    Base,
    Exam,
    ExamRoom,
    Faculty,
    RosterEntry,
    Settings,
)
from .repositories import (
    AllocationRepository,
    ExamRepository,
    FacultyRepository,
    RosterRepository,
    SettingsRepository,
)

__all__ = [
    "ACTIVE_STATUSES",
    "ASSIGNED",
    "CANCELLED",
    "PENDING",
    "REPLACED",
    "Allocation",
    "Base",
    "Exam",
    "ExamRoom",
    "Faculty",
    "RosterEntry",
    "Settings",
    "AllocationRepository",
    "ExamRepository",
    "FacultyRepository",
    "RosterRepository",
    "SettingsRepository",
]
