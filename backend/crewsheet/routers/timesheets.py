"""
Timesheet approval endpoints.

Thin adapters: every rule lives in services.timesheet_approval, and the
domain errors it raises are turned into HTTP responses by the handler
registered in main.py.
"""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crewsheet.database import get_db
from crewsheet.dependencies import get_current_user
from crewsheet.exceptions import AuthorizationError
from crewsheet.models.user import User
from crewsheet.schemas.timesheet import (
    AvailableActions,
    PdfLink,
    TimesheetApproval,
    TimesheetRejection,
    TimesheetResponse,
)
from crewsheet.services import timesheet_approval
from crewsheet.services.file_storage import PdfStore, get_pdf_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/timesheets", tags=["timesheets"])


def _get_visible(db: Session, timesheet_id: uuid.UUID, user: User):
    timesheet = timesheet_approval.get_timesheet(db, timesheet_id)
    shift = timesheet.shift
    visible = (
        user.is_admin
        or timesheet_approval.is_company_member(user, shift)
        or timesheet_approval.is_assigned_crew_chief(user, shift)
    )
    if not visible:
        raise AuthorizationError("Not allowed to view this timesheet")
    return timesheet


@router.get("/{timesheet_id}", response_model=TimesheetResponse)
def get_timesheet(
    timesheet_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _get_visible(db, timesheet_id, user)


@router.post("/{timesheet_id}/submit", response_model=TimesheetResponse)
def submit_timesheet(
    timesheet_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    store: PdfStore = Depends(get_pdf_store),
):
    return timesheet_approval.submit(db, timesheet_id, user, store)


@router.post("/{timesheet_id}/approve", response_model=TimesheetResponse)
def approve_timesheet(
    timesheet_id: uuid.UUID,
    payload: TimesheetApproval,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    store: PdfStore = Depends(get_pdf_store),
):
    return timesheet_approval.approve(
        db,
        timesheet_id,
        user,
        signature=payload.signature,
        stage=payload.stage,
        store=store,
        notes=payload.notes,
    )


@router.post("/{timesheet_id}/reject", response_model=TimesheetResponse)
def reject_timesheet(
    timesheet_id: uuid.UUID,
    payload: TimesheetRejection,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return timesheet_approval.reject(db, timesheet_id, user, reason=payload.reason, notes=payload.notes)


@router.get("/{timesheet_id}/actions", response_model=AvailableActions)
def available_actions(
    timesheet_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    timesheet = _get_visible(db, timesheet_id, user)
    stage = timesheet_approval.current_stage(timesheet)
    return {
        "timesheet_id": timesheet.id,
        "status": timesheet.status,
        "stage": stage.value if stage else None,
        "actions": timesheet_approval.get_available_actions(timesheet, user),
    }


@router.get("/{timesheet_id}/pdf", response_model=PdfLink)
def download_pdf(
    timesheet_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    store: PdfStore = Depends(get_pdf_store),
):
    timesheet = _get_visible(db, timesheet_id, user)
    key, url = timesheet_approval.get_timesheet_pdf_url(timesheet, store)
    return {"timesheet_id": timesheet.id, "key": key, "url": url}
