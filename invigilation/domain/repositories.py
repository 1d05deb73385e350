"""Repository classes for data access.

Repositories add, delete and flush but never commit; the calling
operation owns the transaction.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from .models import ACTIVE_STATUSES, Allocation, Exam, Faculty, RosterEntry, Settings

GLOBAL_SETTINGS_KEY = "global"


class FacultyRepository:
    """Repository for faculty account access."""

    @staticmethod
    def get_all(session: Session) -> List[Faculty]:
        """Get all faculty accounts ordered by id."""
        return session.query(Faculty).order_by(Faculty.id).all()

    @staticmethod
    def get_by_id(session: Session, faculty_id: int) -> Optional[Faculty]:
        """Get faculty by ID."""
        return session.get(Faculty, faculty_id)

    @staticmethod
    def get_by_ids(session: Session, faculty_ids: Iterable[int]) -> List[Faculty]:
        ids = list(faculty_ids)
        if not ids:
            return []
        return session.query(Faculty).filter(Faculty.id.in_(ids)).order_by(Faculty.id).all()

    @staticmethod
    def get_by_emails(session: Session, emails: Iterable[str]) -> List[Faculty]:
        """Get accounts whose email matches any of ``emails`` case-insensitively."""
        lowered = sorted({e.strip().lower() for e in emails if e and e.strip()})
        if not lowered:
            return []
        return (
            session.query(Faculty)
            .filter(func.lower(Faculty.email).in_(lowered))
            .order_by(Faculty.id)
            .all()
        )


class RosterRepository:
    """Repository for uploaded roster entries."""

    @staticmethod
    def get_all(session: Session) -> List[RosterEntry]:
        return session.query(RosterEntry).order_by(RosterEntry.id).all()

    @staticmethod
    def delete_all(session: Session) -> int:
        """Delete every roster entry. Returns the number deleted."""
        count = session.query(RosterEntry).delete(synchronize_session="fetch")
        session.flush()
        return count


class ExamRepository:
    """Repository for the exam catalog."""

    @staticmethod
    def get_by_date(session: Session, date: str) -> List[Exam]:
        """Get all exams on a date with their rooms loaded, in catalog order."""
        return (
            session.query(Exam)
            .options(selectinload(Exam.rooms))
            .filter(Exam.date == date)
            .order_by(Exam.id)
            .all()
        )

    @staticmethod
    def distinct_dates(session: Session) -> List[str]:
        rows = session.query(Exam.date).distinct().order_by(Exam.date).all()
        return [row[0] for row in rows]


class AllocationRepository:
    """Repository for allocation data access."""

    @staticmethod
    def get_by_id(session: Session, allocation_id: int) -> Optional[Allocation]:
        return session.get(Allocation, allocation_id)

    @staticmethod
    def get_by_id_with_invigilator(session: Session, allocation_id: int) -> Optional[Allocation]:
        return (
            session.query(Allocation)
            .options(joinedload(Allocation.invigilator))
            .filter(Allocation.id == allocation_id)
            .first()
        )

    @staticmethod
    def get_by_date(session: Session, date: str) -> List[Allocation]:
        """Get all allocations for a date, invigilator joined, in insertion order."""
        return (
            session.query(Allocation)
            .options(joinedload(Allocation.invigilator))
            .filter(Allocation.date == date)
            .order_by(Allocation.id)
            .all()
        )

    @staticmethod
    def get_all(session: Session) -> List[Allocation]:
        return session.query(Allocation).order_by(Allocation.id).all()

    @staticmethod
    def get_by_faculty(session: Session, faculty_id: int) -> List[Allocation]:
        """Get a faculty member's allocations across all dates, by date then slot."""
        return (
            session.query(Allocation)
            .options(joinedload(Allocation.exam))
            .filter(Allocation.invigilator_id == faculty_id)
            .order_by(Allocation.date, Allocation.slot, Allocation.id)
            .all()
        )

    @staticmethod
    def find_slot_conflict(
        session: Session,
        date: str,
        slot: str,
        faculty_id: int,
        exclude_id: int,
    ) -> Optional[Allocation]:
        """Find another active allocation held by ``faculty_id`` in the same date and slot."""
        return (
            session.query(Allocation)
            .filter(
                Allocation.id != exclude_id,
                Allocation.date == date,
                Allocation.slot == slot,
                Allocation.invigilator_id == faculty_id,
                Allocation.status.in_(ACTIVE_STATUSES),
            )
            .first()
        )

    @staticmethod
    def bulk_create(session: Session, allocations: List[Allocation]) -> None:
        session.add_all(allocations)
        session.flush()

    @staticmethod
    def delete_by_date(session: Session, date: str) -> int:
        """Delete all allocations for a date. Returns number of deleted rows."""
        count = (
            session.query(Allocation)
            .filter(Allocation.date == date)
            .delete(synchronize_session="fetch")
        )
        session.flush()
        return count

    @staticmethod
    def count_by_date(session: Session) -> List[Tuple[str, int]]:
        """Dates with allocation counts, newest date first."""
        rows = (
            session.query(Allocation.date, func.count(Allocation.id))
            .group_by(Allocation.date)
            .order_by(Allocation.date.desc())
            .all()
        )
        return [(date, int(count)) for date, count in rows]


class SettingsRepository:
    """Repository for keyed settings rows."""

    @staticmethod
    def get(session: Session, key: str = GLOBAL_SETTINGS_KEY) -> Optional[Settings]:
        return session.query(Settings).filter(Settings.key == key).first()

    @staticmethod
    def upsert(session: Session, values: dict, key: str = GLOBAL_SETTINGS_KEY) -> Settings:
        row = SettingsRepository.get(session, key)
        if row is None:
            row = Settings(key=key)
            session.add(row)
        for name, value in values.items():
            setattr(row, name, value)
        session.flush()
        return row

