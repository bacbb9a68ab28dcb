"""Jobs, shifts, shift assignments and the time entries workers clock against them."""
import uuid

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Date, ForeignKey, CheckConstraint, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from crewsheet.database import Base
from crewsheet.models.enums import JobStatus, ShiftStatus, WorkerStatus, RoleCode


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=JobStatus.pending.value)
    location = Column(String(500), nullable=True)
    company_id = Column(Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    company = relationship("Company", back_populates="jobs")
    shifts = relationship("Shift", back_populates="job", cascade="all, delete-orphan")


class Shift(Base):
    __tablename__ = "shifts"
    __table_args__ = (
        CheckConstraint("required_crew_chiefs >= 0", name="ck_shift_cc_nonneg"),
        CheckConstraint("required_stagehands >= 0", name="ck_shift_sh_nonneg"),
        CheckConstraint("required_fork_operators >= 0", name="ck_shift_fo_nonneg"),
        CheckConstraint("required_reach_fork_operators >= 0", name="ck_shift_rfo_nonneg"),
        CheckConstraint("required_riggers >= 0", name="ck_shift_rg_nonneg"),
        CheckConstraint("required_general_laborers >= 0", name="ck_shift_gl_nonneg"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    job_id = Column(Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default=ShiftStatus.pending.value)
    location = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Legacy single total, used only when no per-role counts are set
    requested_workers = Column(Integer, nullable=True)

    required_crew_chiefs = Column(Integer, nullable=False, default=0)
    required_stagehands = Column(Integer, nullable=False, default=0)
    required_fork_operators = Column(Integer, nullable=False, default=0)
    required_reach_fork_operators = Column(Integer, nullable=False, default=0)
    required_riggers = Column(Integer, nullable=False, default=0)
    required_general_laborers = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    job = relationship("Job", back_populates="shifts")
    assigned_personnel = relationship(
        "AssignedPersonnel", back_populates="shift", cascade="all, delete-orphan",
    )
    timesheets = relationship("Timesheet", back_populates="shift", cascade="all, delete-orphan")


class AssignedPersonnel(Base):
    __tablename__ = "assigned_personnel"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    shift_id = Column(Uuid, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False, index=True)

    # NULL worker = open slot placeholder
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    role_code = Column(String(10), nullable=False, default=RoleCode.stagehand.value)
    status = Column(String(20), nullable=False, default=WorkerStatus.assigned.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    shift = relationship("Shift", back_populates="assigned_personnel")
    user = relationship("User")
    time_entries = relationship(
        "TimeEntry",
        back_populates="assigned_personnel",
        cascade="all, delete-orphan",
        order_by="TimeEntry.entry_number",
    )


class TimeEntry(Base):
    __tablename__ = "time_entries"
    __table_args__ = (
        CheckConstraint("entry_number BETWEEN 1 AND 3", name="ck_time_entry_number"),
        CheckConstraint("clock_out IS NULL OR clock_out >= clock_in", name="ck_time_entry_order"),
        UniqueConstraint("assigned_personnel_id", "entry_number", name="uq_time_entry_number"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    assigned_personnel_id = Column(
        Uuid, ForeignKey("assigned_personnel.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    entry_number = Column(Integer, nullable=False, default=1)
    clock_in = Column(DateTime(timezone=True), nullable=False)
    clock_out = Column(DateTime(timezone=True), nullable=True)
    break_start = Column(DateTime(timezone=True), nullable=True)
    break_end = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    assigned_personnel = relationship("AssignedPersonnel", back_populates="time_entries")
