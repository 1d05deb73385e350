"""Allocation generator - replaces a date's allocations with a fresh greedy pass."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from invigilation.config import Constraints, EngineConfig
from invigilation.domain.models import ASSIGNED, PENDING, Allocation, Exam, ExamRoom
from invigilation.domain.repositories import AllocationRepository, ExamRepository, FacultyRepository
from invigilation.services.availability import normalize_date, normalize_slot
from invigilation.services.constraints import can_assign_faculty, load_constraints
from invigilation.services.roster import FacultyProfile, load_profiles
from invigilation.services.scoring import calculate_candidate_score

from .locks import DEFAULT_LOCKS, DateLocks
from .state import PriorAllocation, RunState

logger = logging.getLogger(__name__)


class AllocationGenerator:
    """
    Generates the invigilation allocations of one date.

    Each call fully replaces the date: existing allocations are deleted and
    every (exam, room, unit) is filled again by picking the best-scoring
    eligible candidate. Units nobody can take become ``pending``. The
    delete, the inserts and the workload counter updates are committed as
    one transaction while the date's lock is held.
    """

    def __init__(
        self,
        session: Session,
        config: EngineConfig | None = None,
        locks: DateLocks | None = None,
    ):
        """
        Initialize generator.

        Args:
            session: Database session used for the whole call
            config: Engine configuration (defaults when omitted)
            locks: Per-date lock registry (process-wide default when omitted)
        """
        self.session = session
        self.config = config or EngineConfig()
        self.locks = locks or DEFAULT_LOCKS

    def generate(self, date) -> List[Allocation]:
        """
        Regenerate allocations for ``date``.

        Returns:
            The committed allocations of the date, invigilators joined

        Raises:
            ValidationError: If the date is missing or unparseable
            StorageError: On any database failure (the transaction is rolled back)
        """
        date = normalize_date(date)
        with self.locks.hold(date):
            try:
                self._replace_date(date)
                self.session.commit()
            except Exception:
                self.session.rollback()
                logger.exception("Generation for %s failed; rolled back", date)
                raise
        return self.get_for_date(date)

    def get_for_date(self, date) -> List[Allocation]:
        """Committed allocations for ``date``, invigilators joined."""
        return AllocationRepository.get_by_date(self.session, normalize_date(date))

    def _replace_date(self, date: str) -> List[Allocation]:
        constraints = load_constraints(self.session, self.config.default_constraints)
        profiles = load_profiles(self.session)
        exams = ExamRepository.get_by_date(self.session, date)

        # Snapshot before deleting: exclusions and prior counts come from it.
        existing = AllocationRepository.get_by_date(self.session, date)
        prior = [PriorAllocation(a.invigilator_id, normalize_slot(a.slot), a.status) for a in existing]
        state = RunState.seed(date, profiles, prior, exclude_prior=self.config.exclude_prior_allocations)

        deleted = AllocationRepository.delete_by_date(self.session, date)
        if deleted:
            logger.info("Deleted %d existing allocations for %s", deleted, date)

        allocations: List[Allocation] = []
        units_seen: Dict[Tuple[int, str], int] = {}
        for exam in exams:
            for room in exam.rooms:
                needed = max(1, int(room.needed_invigilators or 1))
                for _ in range(needed):
                    key = (exam.id, room.classroom_code)
                    unit = units_seen.get(key, 0)
                    units_seen[key] = unit + 1
                    allocations.append(self._fill_unit(exam, room, unit, profiles, constraints, state))

        AllocationRepository.bulk_create(self.session, allocations)
        updated = self._apply_load_deltas(date, state)

        assigned = sum(1 for a in allocations if a.status == ASSIGNED)
        logger.info(
            "Generated %d allocations for %s across %d exams: %d assigned, %d pending; %d faculty counters updated",
            len(allocations),
            date,
            len(exams),
            assigned,
            len(allocations) - assigned,
            updated,
        )
        return allocations

    def _fill_unit(
        self,
        exam: Exam,
        room: ExamRoom,
        unit: int,
        profiles: List[FacultyProfile],
        constraints: Constraints,
        state: RunState,
    ) -> Allocation:
        slot = normalize_slot(exam.slot)
        best = pick_candidate(profiles, state.date, slot, constraints, state)

        if best is None:
            owner = self._pending_owner(profiles)
            logger.warning(
                "No eligible invigilator for %s room %s (%s %s, unit %d); marked pending",
                exam.course_code,
                room.classroom_code,
                state.date,
                slot,
                unit,
            )
            return Allocation(
                exam_id=exam.id,
                date=state.date,
                slot=slot,
                classroom_code=room.classroom_code,
                unit=unit,
                invigilator_id=owner,
                status=PENDING,
            )

        state.record(best.id, slot)
        logger.debug("Assigned faculty %s to %s room %s unit %d", best.id, exam.course_code, room.classroom_code, unit)
        return Allocation(
            exam_id=exam.id,
            date=state.date,
            slot=slot,
            classroom_code=room.classroom_code,
            unit=unit,
            invigilator_id=best.id,
            status=ASSIGNED,
        )

    def _pending_owner(self, profiles: List[FacultyProfile]) -> Optional[int]:
        if self.config.pending_owner == "first_profile" and profiles:
            return profiles[0].id
        return None

    def _apply_load_deltas(self, date: str, state: RunState) -> int:
        """Write counter changes for every faculty touched by the run. Returns rows changed."""
        touched = set(state.baseline_loads) | set(state.prior_counts)
        updated = 0
        for faculty in FacultyRepository.get_by_ids(self.session, touched):
            net = state.load_delta(faculty.id)
            if faculty.id in state.daily_counts:
                final_daily = state.daily_counts[faculty.id]
            else:
                # Held allocations on the date but is no longer on the roster.
                stored_daily = int((faculty.daily_load or {}).get(date, 0))
                final_daily = max(0, stored_daily - state.prior_counts.get(faculty.id, 0))

            changed = False
            if net:
                faculty.current_load = int(faculty.current_load or 0) + net
                changed = True

            daily_load = faculty.daily_load if faculty.daily_load is not None else {}
            if final_daily:
                if daily_load.get(date) != final_daily:
                    daily_load[date] = final_daily
                    changed = True
            elif date in daily_load:
                del daily_load[date]
                changed = True
            faculty.daily_load = daily_load

            if changed:
                updated += 1
        self.session.flush()
        return updated


def pick_candidate(
    profiles: List[FacultyProfile],
    date: str,
    slot: str,
    constraints: Constraints,
    state: RunState,
) -> Optional[FacultyProfile]:
    """
    Highest-scoring eligible profile for one unit.

    Ties go to the first maximal profile in iteration order.
    """
    best: Optional[FacultyProfile] = None
    best_score = float("-inf")
    taken_in_slot = state.taken_in_slot(slot)
    for profile in profiles:
        day_count = state.day_count(profile.id)
        if not can_assign_faculty(
            profile, date, slot, day_count, taken_in_slot, state.taken_by_day, constraints
        ):
            continue
        score = calculate_candidate_score(profile, constraints, state.cumulative_load(profile.id), day_count)
        if score > best_score:
            best_score = score
            best = profile
    return best


def generate_for_date(session: Session, date, config: EngineConfig | None = None) -> List[Allocation]:
    """Convenience wrapper around ``AllocationGenerator.generate``."""
    return AllocationGenerator(session, config).generate(date)
