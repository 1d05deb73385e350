"""Maintenance operations: clearing a date or the roster, reconciling counters, listings."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

from invigilation.domain.models import ASSIGNED, Allocation
from invigilation.domain.repositories import (
    AllocationRepository,
    ExamRepository,
    FacultyRepository,
    RosterRepository,
)
from invigilation.errors import NotFoundError
from invigilation.services.availability import normalize_date

from .locks import DEFAULT_LOCKS, DateLocks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClearResult:
    date: str
    deleted: int
    adjusted: int


@dataclass(frozen=True)
class LoadDrift:
    """Counter values found on a faculty row versus values implied by allocations."""

    faculty_id: int
    stored_load: int
    actual_load: int
    stored_daily: Dict[str, int]
    actual_daily: Dict[str, int]


def clear_day(session: Session, date, locks: DateLocks | None = None) -> ClearResult:
    """
    Delete every allocation of ``date`` and take the removed load off its owners.

    Owners lose their assigned count from the cumulative counter and their
    ``daily_load`` entry for the date.
    """
    date = normalize_date(date)
    with (locks or DEFAULT_LOCKS).hold(date):
        try:
            rows = AllocationRepository.get_by_date(session, date)
            per_faculty: Dict[int, int] = defaultdict(int)
            owners = set()
            for row in rows:
                if row.invigilator_id is None:
                    continue
                owners.add(row.invigilator_id)
                if row.status == ASSIGNED:
                    per_faculty[row.invigilator_id] += 1

            deleted = AllocationRepository.delete_by_date(session, date)
            adjusted = 0
            for faculty in FacultyRepository.get_by_ids(session, owners):
                faculty.current_load = max(0, int(faculty.current_load or 0) - per_faculty.get(faculty.id, 0))
                daily_load = faculty.daily_load if faculty.daily_load is not None else {}
                daily_load.pop(date, None)
                faculty.daily_load = daily_load
                adjusted += 1
            session.commit()
        except Exception:
            session.rollback()
            raise

    logger.info("Cleared %d allocations for %s; adjusted %d faculty", deleted, date, adjusted)
    return ClearResult(date=date, deleted=deleted, adjusted=adjusted)


def reconcile_loads(session: Session) -> List[LoadDrift]:
    """
    Recompute every faculty's counters from assigned allocations.

    Rows whose stored ``current_load`` or ``daily_load`` disagree with the
    allocation records are corrected and reported.

    Returns:
        One LoadDrift per corrected faculty row
    """
    actual_daily: Dict[int, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for alloc in AllocationRepository.get_all(session):
        if alloc.status == ASSIGNED and alloc.invigilator_id is not None:
            actual_daily[alloc.invigilator_id][alloc.date] += 1

    drift: List[LoadDrift] = []
    try:
        for faculty in FacultyRepository.get_all(session):
            daily = dict(actual_daily.get(faculty.id, {}))
            load = sum(daily.values())
            stored_daily = {str(k): int(v) for k, v in (faculty.daily_load or {}).items() if int(v)}
            stored_load = int(faculty.current_load or 0)
            if stored_load == load and stored_daily == daily:
                continue
            drift.append(LoadDrift(faculty.id, stored_load, load, stored_daily, daily))
            logger.warning(
                "Counter drift for faculty %s: load %d -> %d, daily %s -> %s",
                faculty.id,
                stored_load,
                load,
                stored_daily,
                daily,
            )
            faculty.current_load = load
            faculty.daily_load = daily
        session.commit()
    except Exception:
        session.rollback()
        raise
    return drift


def schedule_history(session: Session) -> List[Tuple[str, int]]:
    """Dates that have allocations, with counts, newest first."""
    return AllocationRepository.count_by_date(session)


def exam_dates(session: Session) -> List[str]:
    """Distinct exam dates in ascending order."""
    return ExamRepository.distinct_dates(session)


def faculty_allocations(session: Session, faculty_id: int) -> List[Allocation]:
    """
    All allocations held by one faculty member, ordered by date and slot.

    Raises:
        NotFoundError: If the faculty account does not exist
    """
    if FacultyRepository.get_by_id(session, faculty_id) is None:
        raise NotFoundError(f"Faculty {faculty_id} not found")
    return AllocationRepository.get_by_faculty(session, faculty_id)


def clear_roster(session: Session) -> int:
    """
    Delete every roster entry so the next run needs a fresh upload.

    Faculty accounts, exams and allocations are left untouched.

    Returns:
        Number of roster entries deleted
    """
    try:
        deleted = RosterRepository.delete_all(session)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("Cleared %d roster entries", deleted)
    return deleted
