from pydantic import BaseModel, ConfigDict
from typing import Optional, Literal
from datetime import datetime
from uuid import UUID


class TimesheetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    shift_id: UUID
    status: str
    submitted_by: Optional[UUID] = None
    submitted_at: Optional[datetime] = None
    company_signature: Optional[str] = None
    company_approved_at: Optional[datetime] = None
    company_approved_by: Optional[UUID] = None
    company_notes: Optional[str] = None
    manager_signature: Optional[str] = None
    manager_approved_at: Optional[datetime] = None
    manager_approved_by: Optional[UUID] = None
    manager_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[UUID] = None
    rejected_stage: Optional[str] = None
    unsigned_pdf_key: Optional[str] = None
    signed_pdf_key: Optional[str] = None
    final_pdf_key: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TimesheetApproval(BaseModel):
    stage: Literal["company", "manager"]
    signature: Optional[str] = None
    notes: Optional[str] = None


class TimesheetRejection(BaseModel):
    reason: Optional[str] = None
    notes: Optional[str] = None


class AvailableActions(BaseModel):
    timesheet_id: UUID
    status: str
    stage: Optional[str] = None
    actions: list[str] = []


class PdfLink(BaseModel):
    timesheet_id: UUID
    key: str
    url: str
