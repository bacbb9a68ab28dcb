import uuid

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from crewsheet.database import Base
from crewsheet.models.enums import TimesheetStatus


class Timesheet(Base):
    __tablename__ = "timesheets"
    __table_args__ = (
        # one live timesheet per shift; rejected ones stay as history
        Index(
            "uq_timesheets_live_shift",
            "shift_id",
            unique=True,
            postgresql_where=text("status <> 'REJECTED'"),
            sqlite_where=text("status <> 'REJECTED'"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    shift_id = Column(Uuid, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(40), nullable=False, default=TimesheetStatus.draft.value, index=True)

    submitted_by = Column(Uuid, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)

    company_signature = Column(Text, nullable=True)
    company_approved_at = Column(DateTime(timezone=True), nullable=True)
    company_approved_by = Column(Uuid, nullable=True)
    company_notes = Column(Text, nullable=True)

    manager_signature = Column(Text, nullable=True)
    manager_approved_at = Column(DateTime(timezone=True), nullable=True)
    manager_approved_by = Column(Uuid, nullable=True)
    manager_notes = Column(Text, nullable=True)

    rejection_reason = Column(Text, nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(Uuid, nullable=True)
    rejected_stage = Column(String(20), nullable=True)

    # Object storage keys, one per signed milestone
    unsigned_pdf_key = Column(String(1000), nullable=True)
    signed_pdf_key = Column(String(1000), nullable=True)
    final_pdf_key = Column(String(1000), nullable=True)

    # Optimistic lock counter, bumped on every flush
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    shift = relationship("Shift", back_populates="timesheets")

    __mapper_args__ = {"version_id_col": version}
