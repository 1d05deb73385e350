"""Availability rules and the availability predicate."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

import pandas as pd

from invigilation.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailabilityRule:
    """
    One availability rule: either a specific date or a day of week, plus the
    slots the faculty member can cover on it.

    ``day_of_week`` uses 0 = Sunday ... 6 = Saturday.
    """

    slots: FrozenSet[str]
    date: Optional[str] = None
    day_of_week: Optional[int] = None


def normalize_date(value: Any) -> str:
    """
    Normalize a date-like value to ``YYYY-MM-DD``.

    Raises:
        ValidationError: If the value is missing or not a parseable date
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("date is required (YYYY-MM-DD)")
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid date {value!r}: {e}") from e
    if pd.isna(ts):
        raise ValidationError(f"Invalid date {value!r}")
    return ts.strftime("%Y-%m-%d")


def weekday_of(date: str) -> int:
    """Day of week for a ``YYYY-MM-DD`` date, 0 = Sunday ... 6 = Saturday."""
    return (pd.Timestamp(date).dayofweek + 1) % 7


def normalize_slot(slot: Any) -> str:
    """Slot names compare case-insensitively: ``"fn"`` and ``"FN"`` are one slot."""
    return str(slot).strip().upper()


def _rule_date(value: Any, owner: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    try:
        return normalize_date(value)
    except ValidationError:
        logger.warning("Ignoring unparseable availability date %r for %s", value, owner or "<unknown>")
        return None


def _rule_day_of_week(value: Any, owner: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        day = int(value)
    except (TypeError, ValueError):
        day = -1
    if not 0 <= day <= 6:
        logger.warning("Ignoring invalid availability day of week %r for %s", value, owner or "<unknown>")
        return None
    return day


def parse_rules(
    raw: Optional[Iterable[Dict[str, Any]]],
    owner: Optional[str] = None,
) -> List[AvailabilityRule]:
    """
    Parse stored availability entries into rules.

    Entries look like ``{"date": "2025-11-20", "slots": ["FN", "AN"]}`` or
    ``{"day_of_week": 4, "slots": ["AN"]}`` (``dayOfWeek`` is accepted too).

    A date or day of week that cannot be parsed is logged and dropped. The
    rule is kept, so a rule left with neither matches nothing and the
    profile stays restricted.

    Args:
        raw: Stored availability entries
        owner: Faculty email, used in warnings
    """
    rules: List[AvailabilityRule] = []
    for entry in raw or []:
        rules.append(
            AvailabilityRule(
                slots=frozenset(normalize_slot(s) for s in entry.get("slots") or []),
                date=_rule_date(entry.get("date"), owner),
                day_of_week=_rule_day_of_week(entry.get("day_of_week", entry.get("dayOfWeek")), owner),
            )
        )
    return rules


def is_available(profile, date: str, slot: str) -> bool:
    """
    Check whether a profile can invigilate on ``date`` in ``slot``.

    A profile without rules is available everywhere. Otherwise any rule
    matching the exact date, or the weekday of the date, with the slot in
    its slot set makes the profile available.
    """
    if not profile.availability:
        return True

    slot = normalize_slot(slot)
    dow = weekday_of(date)
    for rule in profile.availability:
        if slot not in rule.slots:
            continue
        if rule.date is not None and rule.date == date:
            return True
        if rule.day_of_week is not None and rule.day_of_week == dow:
            return True
    return False
