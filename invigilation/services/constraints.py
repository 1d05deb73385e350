"""Constraint store accessor and candidate eligibility."""

from __future__ import annotations

import logging
from typing import Set

from sqlalchemy.orm import Session

from invigilation.config import Constraints, constraints_from_dict
from invigilation.domain.models import Settings
from invigilation.domain.repositories import SettingsRepository

from .availability import is_available

logger = logging.getLogger(__name__)


def constraints_from_settings(row: Settings) -> Constraints:
    return Constraints(
        max_hours_per_day=int(row.max_hours_per_day or 0),
        no_same_day_repeat=bool(row.no_same_day_repeat),
        department_weighting={str(k): float(v) for k, v in (row.department_weighting or {}).items()},
        designation_weighting={str(k): float(v) for k, v in (row.designation_weighting or {}).items()},
    )


def load_constraints(session: Session, default: Constraints | None = None) -> Constraints:
    """
    Load the global constraints singleton.

    Args:
        session: Database session
        default: Returned when no ``global`` settings row exists

    Returns:
        Constraints
    """
    row = SettingsRepository.get(session)
    if row is None:
        logger.debug("No global settings row; using default constraints")
        return default if default is not None else Constraints()
    return constraints_from_settings(row)


def save_constraints(session: Session, raw: dict) -> Constraints:
    """Validate and upsert the global constraints, committing the change."""
    constraints = constraints_from_dict(raw)
    try:
        SettingsRepository.upsert(
            session,
            {
                "max_hours_per_day": constraints.max_hours_per_day,
                "no_same_day_repeat": constraints.no_same_day_repeat,
                "department_weighting": dict(constraints.department_weighting),
                "designation_weighting": dict(constraints.designation_weighting),
            },
        )
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("Saved global constraints: %s", constraints)
    return constraints


def can_assign_faculty(
    profile,
    date: str,
    slot: str,
    day_count: int,
    taken_in_slot: Set[int],
    taken_today: Set[int],
    constraints: Constraints,
) -> bool:
    """
    Check if a faculty member can take one more unit on ``date``/``slot``.

    Args:
        profile: FacultyProfile to check
        date: Date being scheduled (YYYY-MM-DD)
        slot: Exam slot of the unit
        day_count: Units already assigned to the profile on the date
        taken_in_slot: Faculty ids already holding this slot on the date
        taken_today: Faculty ids used anywhere on the date
        constraints: Global constraints

    Returns:
        True if the profile is eligible, False otherwise
    """
    # 1. Per-day cap (0 disables)
    cap = constraints.max_hours_per_day
    if cap and day_count >= cap:
        return False

    # 2. Declared availability
    if not is_available(profile, date, slot):
        return False

    # 3. One room per slot
    if profile.id in taken_in_slot:
        return False

    # 4. At most one unit per day when repeats are off
    if constraints.no_same_day_repeat and profile.id in taken_today:
        return False

    return True
