"""Tests for the reassignment service."""

import pytest

from invigilation.domain.models import Allocation
from invigilation.engine.generator import generate_for_date
from invigilation.engine.maintenance import reconcile_loads
from invigilation.engine.reassign import ReassignmentService
from invigilation.errors import ConflictError, NotFoundError, ValidationError

EXAM_DATE = "2025-11-20"


@pytest.fixture
def two_rooms(db_session, add_faculty, add_exam):
    """F1 holds room A1 and F2 holds room A2 in the FN slot; F3 is free."""
    f1 = add_faculty("F1")
    f2 = add_faculty("F2")
    f3 = add_faculty("F3", on_roster=False)
    add_exam("CS101", slot="FN", rooms=[("A1", 1), ("A2", 1)])
    rows = generate_for_date(db_session, EXAM_DATE)
    by_room = {r.classroom_code: r for r in rows}
    assert by_room["A1"].invigilator_id == f1.id
    assert by_room["A2"].invigilator_id == f2.id
    return f1, f2, f3, by_room


def test_reassign_conflict_in_same_slot(db_session, two_rooms):
    f1, _, _, by_room = two_rooms
    service = ReassignmentService(db_session)

    with pytest.raises(ConflictError):
        service.reassign(by_room["A2"].id, f1.id)


def test_self_reassignment_succeeds_without_load_change(db_session, two_rooms):
    f1, _, _, by_room = two_rooms
    service = ReassignmentService(db_session)

    alloc = service.reassign(by_room["A1"].id, f1.id)

    assert alloc.invigilator_id == f1.id
    assert alloc.status == "assigned"
    db_session.refresh(f1)
    assert f1.current_load == 1
    assert f1.daily_load == {EXAM_DATE: 1}


def test_reassign_moves_load_between_faculty(db_session, two_rooms):
    f1, _, f3, by_room = two_rooms
    service = ReassignmentService(db_session)

    alloc = service.reassign(by_room["A1"].id, f3.id)

    assert alloc.invigilator_id == f3.id
    db_session.refresh(f1)
    db_session.refresh(f3)
    assert (f1.current_load, f1.daily_load) == (0, {})
    assert (f3.current_load, f3.daily_load) == (1, {EXAM_DATE: 1})
    assert reconcile_loads(db_session) == []


def test_reassign_ignores_other_slots_and_inactive_rows(db_session, two_rooms):
    f1, _, f3, by_room = two_rooms
    # F3 holds a cancelled allocation in the same slot and nothing else
    db_session.add(Allocation(exam_id=by_room["A1"].exam_id, date=EXAM_DATE, slot="FN",
                              classroom_code="Z9", unit=0, invigilator_id=f3.id, status="cancelled"))
    db_session.commit()

    alloc = ReassignmentService(db_session).reassign(by_room["A2"].id, f3.id)

    assert alloc.invigilator_id == f3.id


def test_reassign_pending_allocation(db_session, add_faculty, add_exam):
    add_faculty("F1", availability=[{"date": EXAM_DATE, "slots": ["AN"]}])
    free = add_faculty("Free", on_roster=False)
    add_exam("CS101", slot="FN")
    (pending,) = generate_for_date(db_session, EXAM_DATE)
    assert pending.status == "pending"

    alloc = ReassignmentService(db_session).reassign(pending.id, free.id)

    assert alloc.status == "assigned"
    assert alloc.invigilator_id == free.id
    db_session.refresh(free)
    assert free.current_load == 1
    assert free.daily_load == {EXAM_DATE: 1}


def test_reassign_not_found(db_session, two_rooms):
    f1, _, _, by_room = two_rooms
    service = ReassignmentService(db_session)

    with pytest.raises(NotFoundError):
        service.reassign(999, f1.id)
    with pytest.raises(NotFoundError):
        service.reassign(by_room["A1"].id, 999)


def test_reassign_requires_ids(db_session, two_rooms):
    f1, _, _, by_room = two_rooms
    service = ReassignmentService(db_session)

    with pytest.raises(ValidationError):
        service.reassign(None, f1.id)
    with pytest.raises(ValidationError):
        service.reassign(by_room["A1"].id, None)


def test_get_allocation(db_session, two_rooms):
    f1, _, _, by_room = two_rooms
    service = ReassignmentService(db_session)

    alloc = service.get_allocation(by_room["A1"].id)

    assert alloc.invigilator.email == "f1@college.edu"
    with pytest.raises(NotFoundError):
        service.get_allocation(12345)
