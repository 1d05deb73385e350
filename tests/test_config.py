"""Tests for configuration and constraint loading."""

import pytest

from invigilation.config import Constraints, EngineConfig, constraints_from_dict, load_config
from invigilation.errors import ValidationError
from invigilation.services.constraints import load_constraints, save_constraints


def test_defaults_without_file():
    cfg = load_config(None)
    assert cfg == EngineConfig()
    assert cfg.default_constraints == Constraints(max_hours_per_day=0, no_same_day_repeat=True)
    assert cfg.pending_owner == "none"
    assert cfg.exclude_prior_allocations is True


def test_load_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        """
database_url: "sqlite:///:memory:"
pending_owner: first_profile
exclude_prior_allocations: false
log_level: debug
default_constraints:
  max_hours_per_day: 2
  no_same_day_repeat: false
  department_weighting:
    CSE: 1.5
"""
    )

    cfg = load_config(path)

    assert cfg.database_url == "sqlite:///:memory:"
    assert cfg.pending_owner == "first_profile"
    assert cfg.exclude_prior_allocations is False
    assert cfg.log_level == "DEBUG"
    assert cfg.default_constraints.max_hours_per_day == 2
    assert cfg.default_constraints.no_same_day_repeat is False
    assert cfg.default_constraints.department_weighting == {"CSE": 1.5}


@pytest.mark.parametrize(
    "body",
    [
        "unknown_key: 1\n",
        "pending_owner: somebody\n",
        "exclude_prior_allocations: maybe\n",
        "default_constraints:\n  max_hours_per_day: -1\n",
        "default_constraints:\n  department_weighting: [1, 2]\n",
        "- just\n- a list\n",
    ],
)
def test_load_yaml_rejects_bad_values(tmp_path, body):
    path = tmp_path / "config.yaml"
    path.write_text(body)
    with pytest.raises(ValidationError):
        load_config(path)


def test_malformed_yaml_is_a_validation_error(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("database_url: sqlite:///:memory:\n")
    with pytest.raises(ValidationError, match="Malformed config file"):
        load_config(path)


def test_missing_config_file_is_a_validation_error(tmp_path):
    with pytest.raises(ValidationError, match="Cannot read config file"):
        load_config(tmp_path / "absent.yaml")


def test_constraints_accept_camel_case_keys():
    constraints = constraints_from_dict(
        {"maxHoursPerDay": 3, "noSameDayRepeat": False, "designationWeighting": {"Professor": "0.5"}}
    )
    assert constraints == Constraints(
        max_hours_per_day=3, no_same_day_repeat=False, designation_weighting={"Professor": 0.5}
    )


def test_load_constraints_falls_back_to_default(db_session):
    default = Constraints(max_hours_per_day=4)
    assert load_constraints(db_session, default) is default
    assert load_constraints(db_session) == Constraints()


def test_save_then_load_constraints(db_session):
    save_constraints(db_session, {"max_hours_per_day": 2, "department_weighting": {"EEE": 2}})
    save_constraints(db_session, {"max_hours_per_day": 1, "no_same_day_repeat": False})

    loaded = load_constraints(db_session)

    assert loaded.max_hours_per_day == 1
    assert loaded.no_same_day_repeat is False
    assert loaded.department_weighting == {}
