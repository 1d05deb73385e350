"""SQLAlchemy models for the invigilation allocation system."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.ext.mutable import MutableDict
from sqlalchemy.orm import DeclarativeBase, relationship

ASSIGNED = "assigned"
PENDING = "pending"
REPLACED = "replaced"
CANCELLED = "cancelled"

# Statuses that occupy a faculty member's slot on a date.
ACTIVE_STATUSES = (ASSIGNED, PENDING)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Faculty(Base):
    """Persistent faculty account with workload counters."""

    __tablename__ = "faculty"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(254), nullable=False, unique=True, index=True)
    department = Column(String(100), nullable=False)
    designation = Column(String(100), nullable=False)

    # [{"date": "2025-11-20", "slots": ["FN"]}, {"day_of_week": 1, "slots": ["AN"]}]
    availability = Column(JSON, nullable=False, default=list)
    max_hours_per_day = Column(Integer, nullable=False, default=2)
    weekly_cap = Column(Integer, nullable=False, default=10)

    current_load = Column(Integer, nullable=False, default=0)
    daily_load = Column(MutableDict.as_mutable(JSON), nullable=False, default=dict)  # date -> count

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    allocations = relationship("Allocation", back_populates="invigilator")

    def __repr__(self) -> str:
        return f"<Faculty(id={self.id}, email='{self.email}', load={self.current_load})>"


class RosterEntry(Base):
    """Uploaded roster row; overrides account fields for a generation run."""

    __tablename__ = "faculty_roster"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(254), nullable=False, index=True)  # not unique; accounts hold uniqueness
    department = Column(String(100), nullable=True)
    designation = Column(String(100), nullable=True)
    availability = Column(JSON, nullable=True)
    max_hours_per_day = Column(Integer, nullable=True)
    weekly_cap = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<RosterEntry(id={self.id}, email='{self.email}')>"


class Exam(Base):
    """Exam sitting on one date and slot, spread over one or more rooms."""

    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_code = Column(String(50), nullable=False)
    course_name = Column(String(200), nullable=False)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    slot = Column(String(4), nullable=False)  # FN, AN, EV

    rooms = relationship(
        "ExamRoom",
        back_populates="exam",
        order_by="ExamRoom.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Exam(id={self.id}, course='{self.course_code}', date={self.date}, slot={self.slot})>"


class ExamRoom(Base):
    """Room used by an exam and how many invigilators it needs."""

    __tablename__ = "exam_rooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    classroom_code = Column(String(50), nullable=False)
    needed_invigilators = Column(Integer, nullable=False, default=1)

    exam = relationship("Exam", back_populates="rooms")

    def __repr__(self) -> str:
        return f"<ExamRoom(exam={self.exam_id}, room='{self.classroom_code}', needed={self.needed_invigilators})>"


class Allocation(Base):
    """Binding of one invigilator to one (date, slot, classroom) unit."""

    __tablename__ = "allocations"
    __table_args__ = (
        UniqueConstraint("exam_id", "date", "slot", "classroom_code", "unit", name="uq_allocation_unit"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False)
    date = Column(String(10), nullable=False, index=True)
    slot = Column(String(4), nullable=False)
    classroom_code = Column(String(50), nullable=False)
    unit = Column(Integer, nullable=False, default=0)
    invigilator_id = Column(Integer, ForeignKey("faculty.id"), nullable=True)  # None for unstaffed units
    status = Column(String(20), nullable=False, default=ASSIGNED)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    invigilator = relationship("Faculty", back_populates="allocations")
    exam = relationship("Exam")

    def __repr__(self) -> str:
        return (
            f"<Allocation(id={self.id}, date={self.date}, slot={self.slot}, "
            f"room='{self.classroom_code}', invigilator={self.invigilator_id}, status={self.status})>"
        )


class Settings(Base):
    """Keyed settings rows; ``global`` holds the allocation constraints."""

    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(50), nullable=False, unique=True)
    max_hours_per_day = Column(Integer, nullable=False, default=2)
    no_same_day_repeat = Column(Boolean, nullable=False, default=True)
    department_weighting = Column(JSON, nullable=False, default=dict)
    designation_weighting = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Settings(key='{self.key}', max_hours_per_day={self.max_hours_per_day})>"
