"""Engine configuration loaded from YAML."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from invigilation.errors import ValidationError

PENDING_OWNER_MODES = ("none", "first_profile")


@dataclass(frozen=True)
class Constraints:
    """Global allocation constraints (the ``global`` settings singleton)."""

    max_hours_per_day: int = 0
    no_same_day_repeat: bool = True
    department_weighting: Dict[str, float] = field(default_factory=dict)
    designation_weighting: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class EngineConfig:
    database_url: str = "sqlite:///invigilation.db"
    default_constraints: Constraints = field(default_factory=Constraints)
    pending_owner: str = "none"
    exclude_prior_allocations: bool = True
    log_level: str = "INFO"


def _weighting(value: Any, key: str) -> Dict[str, float]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{key} must be a mapping, got {type(value).__name__}")
    try:
        return {str(k): float(v) for k, v in value.items()}
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{key} values must be numeric: {e}") from e


def constraints_from_dict(raw: Optional[Dict[str, Any]]) -> Constraints:
    """
    Build Constraints from a plain mapping.

    Accepts both snake_case keys and the camelCase keys used by the
    admin settings payload (``maxHoursPerDay``, ``noSameDayRepeat`` ...).
    """
    raw = dict(raw or {})
    aliases = {
        "maxHoursPerDay": "max_hours_per_day",
        "noSameDayRepeat": "no_same_day_repeat",
        "departmentWeighting": "department_weighting",
        "designationWeighting": "designation_weighting",
    }
    for camel, snake in aliases.items():
        if camel in raw:
            raw[snake] = raw.pop(camel)

    unknown = set(raw) - set(aliases.values())
    if unknown:
        raise ValidationError(f"Unknown constraint keys: {sorted(unknown)}")

    max_hours = raw.get("max_hours_per_day", 0)
    if isinstance(max_hours, bool) or not isinstance(max_hours, (int, float)) or max_hours < 0:
        raise ValidationError(f"max_hours_per_day must be a non-negative number, got {max_hours!r}")

    no_repeat = raw.get("no_same_day_repeat", True)
    if not isinstance(no_repeat, bool):
        raise ValidationError(f"no_same_day_repeat must be a boolean, got {no_repeat!r}")

    return Constraints(
        max_hours_per_day=int(max_hours),
        no_same_day_repeat=no_repeat,
        department_weighting=_weighting(raw.get("department_weighting"), "department_weighting"),
        designation_weighting=_weighting(raw.get("designation_weighting"), "designation_weighting"),
    )


def load_config(path: str | Path | None = None) -> EngineConfig:
    """
    Load engine configuration.

    Args:
        path: YAML file; when None the built-in defaults are returned

    Returns:
        EngineConfig

    Raises:
        ValidationError: On an unreadable or malformed file, unknown keys or
            badly typed values
    """
    if path is None:
        return EngineConfig()

    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as e:
        raise ValidationError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ValidationError(f"Malformed config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"Config root must be a mapping: {path}")

    known = {"database_url", "default_constraints", "pending_owner", "exclude_prior_allocations", "log_level"}
    unknown = set(data) - known
    if unknown:
        raise ValidationError(f"Unknown config keys: {sorted(unknown)}")

    pending_owner = str(data.get("pending_owner", "none"))
    if pending_owner not in PENDING_OWNER_MODES:
        raise ValidationError(f"pending_owner must be one of {PENDING_OWNER_MODES}, got {pending_owner!r}")

    exclude_prior = data.get("exclude_prior_allocations", True)
    if not isinstance(exclude_prior, bool):
        raise ValidationError("exclude_prior_allocations must be a boolean")

    return EngineConfig(
        database_url=str(data.get("database_url", EngineConfig.database_url)),
        default_constraints=constraints_from_dict(data.get("default_constraints")),
        pending_owner=pending_owner,
        exclude_prior_allocations=exclude_prior,
        log_level=str(data.get("log_level", "INFO")).upper(),
    )
