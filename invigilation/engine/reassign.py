"""Reassignment of a single allocation to another faculty member."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from invigilation.domain.models import ASSIGNED, Allocation, Faculty
from invigilation.domain.repositories import AllocationRepository, FacultyRepository
from invigilation.errors import ConflictError, NotFoundError, ValidationError

from .locks import DEFAULT_LOCKS, DateLocks

logger = logging.getLogger(__name__)


def _shift_load(faculty: Faculty, date: str, delta: int) -> None:
    faculty.current_load = max(0, int(faculty.current_load or 0) + delta)
    daily_load = faculty.daily_load if faculty.daily_load is not None else {}
    count = max(0, int(daily_load.get(date, 0)) + delta)
    if count:
        daily_load[date] = count
    else:
        daily_load.pop(date, None)
    faculty.daily_load = daily_load


class ReassignmentService:
    """Moves one allocation to a new owner under the one-room-per-slot rule."""

    def __init__(self, session: Session, locks: DateLocks | None = None):
        self.session = session
        self.locks = locks or DEFAULT_LOCKS

    def get_allocation(self, allocation_id) -> Allocation:
        """Fetch one allocation with its invigilator joined."""
        if allocation_id is None:
            raise ValidationError("allocation id is required")
        alloc = AllocationRepository.get_by_id_with_invigilator(self.session, allocation_id)
        if alloc is None:
            raise NotFoundError(f"Allocation {allocation_id} not found")
        return alloc

    def reassign(self, allocation_id, to_faculty_id) -> Allocation:
        """
        Give allocation ``allocation_id`` to faculty ``to_faculty_id``.

        The target must not hold another assigned or pending allocation in
        the same date and slot; the allocation being moved is ignored, so
        reassigning to the current owner always succeeds. Workload counters
        of the vacated and the new owner are updated in the same commit.

        Returns:
            The updated allocation

        Raises:
            ValidationError: If an id is missing
            NotFoundError: If the allocation or the faculty does not exist
            ConflictError: If the target is already booked in that slot
        """
        if allocation_id is None:
            raise ValidationError("allocation id is required")
        if to_faculty_id is None:
            raise ValidationError("target faculty id is required")

        existing = AllocationRepository.get_by_id(self.session, allocation_id)
        if existing is None:
            raise NotFoundError(f"Allocation {allocation_id} not found")

        with self.locks.hold(existing.date):
            try:
                alloc = self._reassign_locked(allocation_id, to_faculty_id)
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
        return alloc

    def _reassign_locked(self, allocation_id, to_faculty_id) -> Allocation:
        # Re-read under the lock; a regeneration may have replaced the row.
        self.session.expire_all()
        alloc = AllocationRepository.get_by_id(self.session, allocation_id)
        if alloc is None:
            raise NotFoundError(f"Allocation {allocation_id} not found")
        target = FacultyRepository.get_by_id(self.session, to_faculty_id)
        if target is None:
            raise NotFoundError(f"Faculty {to_faculty_id} not found")

        conflict = AllocationRepository.find_slot_conflict(
            self.session, alloc.date, alloc.slot, target.id, exclude_id=alloc.id
        )
        if conflict is not None:
            raise ConflictError(
                f"Faculty {target.id} already assigned in {alloc.date} {alloc.slot} "
                f"(room {conflict.classroom_code})"
            )

        previous_owner = alloc.invigilator_id
        was_assigned = alloc.status == ASSIGNED and previous_owner is not None
        if not (was_assigned and previous_owner == target.id):
            if was_assigned:
                vacated = FacultyRepository.get_by_id(self.session, previous_owner)
                if vacated is not None:
                    _shift_load(vacated, alloc.date, -1)
            _shift_load(target, alloc.date, +1)

        alloc.invigilator_id = target.id
        alloc.status = ASSIGNED
        self.session.flush()
        logger.info(
            "Reassigned allocation %s (%s %s room %s) from %s to %s",
            alloc.id,
            alloc.date,
            alloc.slot,
            alloc.classroom_code,
            previous_owner,
            target.id,
        )
        return alloc
