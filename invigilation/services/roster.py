"""Roster resolution: merge uploaded roster rows with faculty accounts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from invigilation.domain.models import Faculty, RosterEntry
from invigilation.domain.repositories import FacultyRepository, RosterRepository

from .availability import AvailabilityRule, parse_rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FacultyProfile:
    """Effective view of one faculty member for a single generation run."""

    id: int
    email: str
    department: Optional[str]
    designation: Optional[str]
    availability: List[AvailabilityRule] = field(default_factory=list)
    max_hours_per_day: Optional[int] = None
    weekly_cap: Optional[int] = None
    current_load: int = 0
    daily_load: Dict[str, int] = field(default_factory=dict)


def _email_key(email: Optional[str]) -> str:
    return str(email or "").strip().lower()


def resolve_profiles(
    roster: Sequence[RosterEntry],
    accounts: Sequence[Faculty],
) -> List[FacultyProfile]:
    """
    Build effective profiles for accounts that appear on the roster.

    Roster values win when present (a roster availability list, even an
    empty one, replaces the account's); otherwise the account's value is
    used. Accounts without a roster row are left out. Profiles keep the
    order of ``accounts``.

    Args:
        roster: Uploaded roster entries; for duplicate emails the last one wins
        accounts: Faculty accounts

    Returns:
        List of FacultyProfile
    """
    by_email = {_email_key(r.email): r for r in roster if _email_key(r.email)}

    profiles: List[FacultyProfile] = []
    for acc in accounts:
        entry = by_email.get(_email_key(acc.email))
        if entry is None:
            continue

        availability = entry.availability if entry.availability is not None else acc.availability
        profiles.append(
            FacultyProfile(
                id=acc.id,
                email=acc.email,
                department=entry.department or acc.department,
                designation=entry.designation or acc.designation,
                availability=parse_rules(availability, owner=acc.email),
                max_hours_per_day=(
                    entry.max_hours_per_day if entry.max_hours_per_day is not None else acc.max_hours_per_day
                ),
                weekly_cap=entry.weekly_cap if entry.weekly_cap is not None else acc.weekly_cap,
                current_load=int(acc.current_load or 0),
                daily_load={str(k): int(v) for k, v in (acc.daily_load or {}).items()},
            )
        )
    return profiles


def load_profiles(session: Session) -> List[FacultyProfile]:
    """Load the roster and matching accounts, then resolve profiles."""
    roster = RosterRepository.get_all(session)
    accounts = FacultyRepository.get_by_emails(session, [r.email for r in roster])
    profiles = resolve_profiles(roster, accounts)
    logger.info(
        "Resolved %d faculty profiles from %d roster entries (%d matching accounts)",
        len(profiles),
        len(roster),
        len(accounts),
    )
    return profiles
