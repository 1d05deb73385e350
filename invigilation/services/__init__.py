"""Services for allocation logic."""

from .availability import AvailabilityRule, is_available, normalize_date, normalize_slot, weekday_of
from .constraints import can_assign_faculty, load_constraints, save_constraints
from .roster import FacultyProfile, load_profiles, resolve_profiles
from .scoring import calculate_candidate_score

__all__ = [
    "AvailabilityRule",
    "is_available",
    "normalize_date",
    "normalize_slot",
    "weekday_of",
    "can_assign_faculty",
    "load_constraints",
    "save_constraints",
    "FacultyProfile",
    "load_profiles",
    "resolve_profiles",
    "calculate_candidate_score",
]
