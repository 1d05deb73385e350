"""Scoring function for invigilation candidates."""

from __future__ import annotations

from typing import Dict

from invigilation.config import Constraints


def preference_weight(profile, constraints: Constraints) -> float:
    """Department weight times designation weight; absent keys count as 1."""
    dept_w = _weight(constraints.department_weighting, profile.department)
    desig_w = _weight(constraints.designation_weighting, profile.designation)
    return dept_w * desig_w


def _weight(weighting: Dict[str, float], key) -> float:
    if key is None:
        return 1.0
    return float(weighting.get(key, 1.0))


def calculate_candidate_score(
    profile,
    constraints: Constraints,
    cumulative_load: int,
    day_count: int,
) -> float:
    """
    Calculate the desirability of assigning a candidate to one unit.

    Higher score = better candidate. Load terms favor the least-loaded
    candidates, both overall and on the day being scheduled.

    Args:
        profile: FacultyProfile being scored
        constraints: Constraints carrying the preference weightings
        cumulative_load: Candidate's running assignment count
        day_count: Candidate's assignment count on the date

    Returns:
        Composite score
    """
    return (
        preference_weight(profile, constraints)
        * (1.0 / (1 + cumulative_load))
        * (1.0 / (1 + day_count))
    )
