"""Tests for day and roster clearing, counter reconciliation and listings."""

import pytest

from invigilation.domain.models import Faculty, RosterEntry
from invigilation.engine.generator import generate_for_date
from invigilation.engine.maintenance import (
    clear_day,
    clear_roster,
    exam_dates,
    faculty_allocations,
    reconcile_loads,
    schedule_history,
)
from invigilation.errors import NotFoundError

EXAM_DATE = "2025-11-20"


def test_clear_day_removes_allocations_and_load(db_session, add_faculty, add_exam):
    a = add_faculty("A", current_load=2, daily_load={"2025-11-19": 2})
    b = add_faculty("B")
    add_exam("CS101", rooms=[("A1", 1), ("A2", 1)])
    generate_for_date(db_session, EXAM_DATE)

    result = clear_day(db_session, EXAM_DATE)

    assert result.deleted == 2
    assert result.adjusted == 2
    db_session.refresh(a)
    db_session.refresh(b)
    assert (a.current_load, a.daily_load) == (2, {"2025-11-19": 2})
    assert (b.current_load, b.daily_load) == (0, {})


def test_clear_day_with_nothing_to_clear(db_session):
    result = clear_day(db_session, EXAM_DATE)
    assert (result.deleted, result.adjusted) == (0, 0)


def test_reconcile_fixes_drift(db_session, add_faculty, add_exam):
    a = add_faculty("A")
    add_exam("CS101")
    generate_for_date(db_session, EXAM_DATE)

    # Simulate a crash that left counters behind
    a.current_load = 7
    a.daily_load = {EXAM_DATE: 3, "2025-01-01": 1}
    db_session.commit()

    drift = reconcile_loads(db_session)

    assert len(drift) == 1
    assert drift[0].faculty_id == a.id
    assert drift[0].stored_load == 7
    assert drift[0].actual_load == 1
    db_session.refresh(a)
    assert a.current_load == 1
    assert a.daily_load == {EXAM_DATE: 1}
    assert reconcile_loads(db_session) == []


def test_reconcile_ignores_consistent_rows(db_session, add_faculty):
    add_faculty("A")
    assert reconcile_loads(db_session) == []
    assert db_session.query(Faculty).one().current_load == 0


def test_history_and_exam_dates(db_session, add_faculty, add_exam, set_constraints):
    set_constraints(no_same_day_repeat=False)
    add_faculty("A")
    add_faculty("B")
    add_exam("CS101", date="2025-11-21")
    add_exam("CS102", date="2025-11-20", rooms=[("A1", 1), ("A2", 1)])
    add_exam("CS103", date="2025-11-20", slot="AN")
    generate_for_date(db_session, "2025-11-20")
    generate_for_date(db_session, "2025-11-21")

    assert schedule_history(db_session) == [("2025-11-21", 1), ("2025-11-20", 3)]
    assert exam_dates(db_session) == ["2025-11-20", "2025-11-21"]


def test_faculty_allocations_across_dates(db_session, add_faculty, add_exam):
    a = add_faculty("A")
    b = add_faculty("B")
    add_exam("CS101", date="2025-11-21", slot="AN", rooms=[("B1", 1)])
    add_exam("CS102", date=EXAM_DATE, slot="FN", rooms=[("A1", 1), ("A2", 1)])
    generate_for_date(db_session, "2025-11-21")
    generate_for_date(db_session, EXAM_DATE)

    rows = faculty_allocations(db_session, a.id)

    assert [(r.date, r.slot, r.classroom_code) for r in rows] == [
        (EXAM_DATE, "FN", "A2"),
        ("2025-11-21", "AN", "B1"),
    ]
    # B carried no load into the second date, so it took the first room
    assert [r.classroom_code for r in faculty_allocations(db_session, b.id)] == ["A1"]


def test_faculty_allocations_unknown_faculty(db_session):
    with pytest.raises(NotFoundError):
        faculty_allocations(db_session, 99)


def test_clear_roster_keeps_accounts_and_allocations(db_session, add_faculty, add_exam):
    add_faculty("A")
    add_faculty("B")
    add_exam("CS101")
    generate_for_date(db_session, EXAM_DATE)

    assert clear_roster(db_session) == 2

    assert db_session.query(RosterEntry).count() == 0
    assert db_session.query(Faculty).count() == 2
    assert len(schedule_history(db_session)) == 1

    # Without a roster the next run has no candidates
    rows = generate_for_date(db_session, EXAM_DATE)
    assert [r.status for r in rows] == ["pending"]
