"""Mutable run state for one generation call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set

from invigilation.domain.models import ACTIVE_STATUSES, ASSIGNED


@dataclass(frozen=True)
class PriorAllocation:
    """Snapshot of an allocation that is about to be replaced."""

    invigilator_id: Optional[int]
    slot: str
    status: str


@dataclass
class RunState:
    """
    Per-call context threaded through the allocation loop.

    taken_by_slot: slot -> faculty ids already holding that slot on the date
    taken_by_day: faculty ids used anywhere on the date
    daily_counts: faculty id -> assigned units on the date
    current_loads: faculty id -> cumulative count without the replaced units,
        updated as units are filled
    baseline_loads: faculty id -> stored cumulative count before the run
    prior_counts: faculty id -> assigned units replaced by this run
    """

    date: str
    taken_by_slot: Dict[str, Set[int]] = field(default_factory=dict)
    taken_by_day: Set[int] = field(default_factory=set)
    daily_counts: Dict[int, int] = field(default_factory=dict)
    current_loads: Dict[int, int] = field(default_factory=dict)
    baseline_loads: Dict[int, int] = field(default_factory=dict)
    prior_counts: Dict[int, int] = field(default_factory=dict)

    @classmethod
    def seed(
        cls,
        date: str,
        profiles: Iterable,
        prior: Iterable[PriorAllocation],
        exclude_prior: bool = True,
    ) -> "RunState":
        """
        Build the state for ``date`` from resolved profiles and the
        allocations being replaced.

        With ``exclude_prior`` the owners of the replaced allocations stay
        excluded from their slot (and from the day under the no-repeat
        rule), so the run moves load to other faculty instead of handing
        the same units back.
        """
        state = cls(date=date)
        for alloc in prior:
            if alloc.invigilator_id is None:
                continue
            if alloc.status == ASSIGNED:
                state.prior_counts[alloc.invigilator_id] = state.prior_counts.get(alloc.invigilator_id, 0) + 1
            if exclude_prior and alloc.status in ACTIVE_STATUSES:
                state.taken_by_slot.setdefault(alloc.slot, set()).add(alloc.invigilator_id)
                state.taken_by_day.add(alloc.invigilator_id)

        for profile in profiles:
            prior_count = state.prior_counts.get(profile.id, 0)
            state.baseline_loads[profile.id] = profile.current_load
            state.current_loads[profile.id] = max(0, profile.current_load - prior_count)
            state.daily_counts[profile.id] = max(0, profile.daily_load.get(date, 0) - prior_count)
        return state

    def taken_in_slot(self, slot: str) -> Set[int]:
        return self.taken_by_slot.setdefault(slot, set())

    def day_count(self, faculty_id: int) -> int:
        return self.daily_counts.get(faculty_id, 0)

    def cumulative_load(self, faculty_id: int) -> int:
        return self.current_loads.get(faculty_id, 0)

    def record(self, faculty_id: int, slot: str) -> None:
        """Register an assignment so later units in the run see it."""
        self.taken_in_slot(slot).add(faculty_id)
        self.taken_by_day.add(faculty_id)
        self.current_loads[faculty_id] = self.current_loads.get(faculty_id, 0) + 1
        self.daily_counts[faculty_id] = self.daily_counts.get(faculty_id, 0) + 1

    def load_delta(self, faculty_id: int) -> int:
        """
        Net change of the stored cumulative counter.

        Equals the units added by the run minus the replaced units that
        were deleted. Faculty outside the run only lose their replaced units.
        """
        if faculty_id not in self.baseline_loads:
            return -self.prior_counts.get(faculty_id, 0)
        return self.current_loads[faculty_id] - self.baseline_loads[faculty_id]
