"""Pytest configuration and shared fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from invigilation.domain.models import Base, Exam, ExamRoom, Faculty, RosterEntry, Settings

EXAM_DATE = "2025-11-20"  # a Thursday


@pytest.fixture
def db_session():
    """Create in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def add_faculty(db_session):
    """
    Factory creating a faculty account plus a matching roster entry.

    ``availability`` goes on the roster entry; ``None`` means the roster
    leaves availability unset and the account's (empty) list applies.
    """

    def _add(
        name,
        availability=None,
        department="CSE",
        designation="Assistant Professor",
        on_roster=True,
        current_load=0,
        daily_load=None,
    ):
        email = f"{name.lower()}@college.edu"
        faculty = Faculty(
            name=name,
            email=email,
            department=department,
            designation=designation,
            availability=[],
            current_load=current_load,
            daily_load=dict(daily_load or {}),
        )
        db_session.add(faculty)
        if on_roster:
            db_session.add(
                RosterEntry(
                    name=name,
                    email=email,
                    department=department,
                    designation=designation,
                    availability=availability,
                )
            )
        db_session.commit()
        return faculty

    return _add


@pytest.fixture
def add_exam(db_session):
    """Factory creating an exam with rooms given as (classroom_code, needed) pairs."""

    def _add(course_code="CS101", date=EXAM_DATE, slot="FN", rooms=(("A1", 1),)):
        exam = Exam(course_code=course_code, course_name=f"{course_code} Paper", date=date, slot=slot)
        exam.rooms = [
            ExamRoom(classroom_code=code, needed_invigilators=needed, position=i)
            for i, (code, needed) in enumerate(rooms)
        ]
        db_session.add(exam)
        db_session.commit()
        return exam

    return _add


@pytest.fixture
def set_constraints(db_session):
    """Write the global constraints row."""

    def _set(max_hours_per_day=0, no_same_day_repeat=True, department_weighting=None, designation_weighting=None):
        db_session.add(
            Settings(
                key="global",
                max_hours_per_day=max_hours_per_day,
                no_same_day_repeat=no_same_day_repeat,
                department_weighting=department_weighting or {},
                designation_weighting=designation_weighting or {},
            )
        )
        db_session.commit()

    return _set
