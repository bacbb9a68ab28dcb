import logging
import uuid
from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crewsheet.database import get_db
from crewsheet.dependencies import get_current_user
from crewsheet.exceptions import NotFoundError
from crewsheet.models.shift import Shift
from crewsheet.models.user import User
from crewsheet.schemas.shift import (
    StaffingResponse,
    WorkerRequirementsResponse,
    WorkerRequirementsUpdate,
)
from crewsheet.schemas.timesheet import TimesheetResponse
from crewsheet.services.staffing import summarize_staffing
from crewsheet.services.timesheet_approval import create_timesheet
from crewsheet.services.worker_requirements import update_worker_requirements

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/shifts", tags=["shifts"])


@router.get("/{shift_id}/staffing", response_model=StaffingResponse)
def shift_staffing(
    shift_id: uuid.UUID,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    """Required vs. filled counts, fulfillment band and per-role shortages."""
    shift = db.query(Shift).filter(Shift.id == shift_id).first()
    if not shift:
        raise NotFoundError("Shift", shift_id)

    summary = summarize_staffing(shift)
    return {
        "shift_id": shift.id,
        "required_total": summary.required_total,
        "filled_total": summary.filled_total,
        "fulfillment_band": summary.fulfillment_band.value,
        "fully_staffed": summary.fully_staffed,
        "display": summary.display,
        "per_role_shortages": [asdict(s) for s in summary.per_role_shortages],
    }


@router.put("/{shift_id}/worker-requirements", response_model=WorkerRequirementsResponse)
def put_worker_requirements(
    shift_id: uuid.UUID,
    payload: WorkerRequirementsUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    counts = [r.model_dump() for r in payload.requirements]
    return update_worker_requirements(db, shift_id, counts, user)


@router.post("/{shift_id}/timesheet", response_model=TimesheetResponse, status_code=201)
def open_timesheet(
    shift_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return create_timesheet(db, shift_id, user)
