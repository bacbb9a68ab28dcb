"""
Timesheet approval state machine.

    DRAFT --submit--> PENDING_COMPANY_APPROVAL --approve(company)--> PENDING_MANAGER_APPROVAL
    PENDING_MANAGER_APPROVAL --approve(manager)--> COMPLETED
    PENDING_COMPANY_APPROVAL --reject--> REJECTED
    PENDING_MANAGER_APPROVAL --reject--> REJECTED

COMPLETED and REJECTED are terminal. A rejected shift gets a new timesheet.

Every mutating call is one transaction. The timesheet row is read with
SELECT ... FOR UPDATE (where the backend supports it) and carries a version
counter, so of two concurrent approvals only one commits; the other sees the
advanced status and fails with InvalidStateError.

PDFs are rendered and uploaded before any field is written, under a key that
is fixed per (timesheet, kind). If rendering, upload or commit fails, nothing
is persisted and the same call can be retried; the retry overwrites the
orphaned object rather than adding a second one.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from crewsheet.exceptions import (
    AuthorizationError,
    DependencyFailure,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from crewsheet.models.enums import (
    ApprovalStage,
    PdfKind,
    ShiftStatus,
    TERMINAL_TIMESHEET_STATUSES,
    TimesheetStatus,
    UserRole,
)
from crewsheet.models.shift import Shift, AssignedPersonnel, TimeEntry
from crewsheet.models.timesheet import Timesheet
from crewsheet.models.user import User
from crewsheet.services.audit import log_action
from crewsheet.services.file_storage import PdfStore, pdf_key
from crewsheet.services.signatures import parse_signature
from crewsheet.services.staffing import counts_as_filled
from crewsheet.services.timesheet_pdf import build_timesheet_document, render_timesheet_pdf

logger = logging.getLogger(__name__)

ACTION_APPROVE = "approve"
ACTION_REJECT = "reject"

# status a timesheet must be in for each stage to act
STAGE_STATUS = {
    ApprovalStage.company: TimesheetStatus.pending_company_approval,
    ApprovalStage.manager: TimesheetStatus.pending_manager_approval,
}
NEXT_STATUS = {
    ApprovalStage.company: TimesheetStatus.pending_manager_approval,
    ApprovalStage.manager: TimesheetStatus.completed,
}
STAGE_PDF = {
    ApprovalStage.company: PdfKind.signed,
    ApprovalStage.manager: PdfKind.final,
}

MAX_REASON_LEN = 2000


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_stage(stage) -> ApprovalStage:
    try:
        return ApprovalStage(getattr(stage, "value", stage))
    except ValueError:
        raise ValidationError(f"Unknown approval stage: {stage!r}")


@contextmanager
def _transaction(db: Session, timesheet_id):
    """Commit on success; roll back and translate failures otherwise."""
    try:
        yield
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning("Concurrent modification of timesheet %s", timesheet_id)
        raise InvalidStateError("Timesheet was modified by another request") from e
    except IntegrityError as e:
        db.rollback()
        logger.warning("Integrity conflict on timesheet %s: %s", timesheet_id, e.orig)
        raise InvalidStateError("Shift already has a live timesheet") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Database error on timesheet %s", timesheet_id)
        raise DependencyFailure("Database error while updating timesheet", dependency="database") from e
    except Exception:
        db.rollback()
        raise


def _load_for_update(db: Session, timesheet_id: uuid.UUID) -> Timesheet:
    timesheet = (
        db.query(Timesheet)
        .filter(Timesheet.id == timesheet_id)
        .populate_existing()
        .with_for_update()
        .first()
    )
    if not timesheet:
        raise NotFoundError("Timesheet", timesheet_id)
    return timesheet


def get_timesheet(db: Session, timesheet_id: uuid.UUID) -> Timesheet:
    timesheet = db.query(Timesheet).filter(Timesheet.id == timesheet_id).first()
    if not timesheet:
        raise NotFoundError("Timesheet", timesheet_id)
    return timesheet


def current_stage(timesheet: Timesheet) -> Optional[ApprovalStage]:
    for stage, status in STAGE_STATUS.items():
        if timesheet.status == status.value:
            return stage
    return None


# ──────────────────────────────────────────────
# Authorization predicates
# ──────────────────────────────────────────────

def is_assigned_crew_chief(actor: User, shift: Shift) -> bool:
    """A CrewChief user holding a valid assignment (any role code) on the shift."""
    if actor.role != UserRole.crew_chief.value:
        return False
    return any(
        a.user_id == actor.id and counts_as_filled(a)
        for a in shift.assigned_personnel
    )


def is_company_member(actor: User, shift: Shift) -> bool:
    if actor.role != UserRole.company_user.value or actor.company_id is None:
        return False
    return shift.job is not None and actor.company_id == shift.job.company_id


def can_act_at_stage(actor: Optional[User], timesheet: Timesheet, stage: ApprovalStage) -> bool:
    """Single source of truth for approve and reject eligibility."""
    if actor is None or not actor.is_active:
        return False
    if actor.is_admin:
        return True
    if stage == ApprovalStage.manager:
        return False
    shift = timesheet.shift
    return is_company_member(actor, shift) or is_assigned_crew_chief(actor, shift)


def can_manage_shift(actor: Optional[User], shift: Shift) -> bool:
    """Who may open and submit a shift's timesheet: admins and its crew chiefs."""
    if actor is None or not actor.is_active:
        return False
    return actor.is_admin or is_assigned_crew_chief(actor, shift)


def get_available_actions(timesheet: Timesheet, actor: Optional[User]) -> list[str]:
    """Which of approve / reject the actor may perform right now."""
    stage = current_stage(timesheet)
    if stage is None or not can_act_at_stage(actor, timesheet, stage):
        return []
    return [ACTION_APPROVE, ACTION_REJECT]


def _check_entry_order(shift: Shift) -> None:
    """Refuse submission while any stored entry clocks out before it clocks in."""
    bad = [
        f"{a.user.name if a.user else a.user_id} (entry {e.entry_number})"
        for a in shift.assigned_personnel
        for e in a.time_entries
        if e.clock_out is not None and e.clock_out < e.clock_in
    ]
    if bad:
        raise ValidationError(
            "Cannot submit timesheet. Clock-out is before clock-in for: " + ", ".join(bad)
        )


def _require_pending(timesheet: Timesheet) -> ApprovalStage:
    if timesheet.status in TERMINAL_TIMESHEET_STATUSES:
        raise InvalidStateError(
            f"Timesheet is {timesheet.status} and can no longer change",
            current_status=timesheet.status,
        )
    stage = current_stage(timesheet)
    if stage is None:
        raise InvalidStateError(
            f"Timesheet is not pending approval (status={timesheet.status})",
            current_status=timesheet.status,
        )
    return stage


# ──────────────────────────────────────────────
# Lifecycle operations
# ──────────────────────────────────────────────

def create_timesheet(db: Session, shift_id: uuid.UUID, actor: User) -> Timesheet:
    """Open a DRAFT timesheet for a shift that has no live (non-rejected) one."""
    with _transaction(db, None):
        shift = db.query(Shift).filter(Shift.id == shift_id).with_for_update().first()
        if not shift:
            raise NotFoundError("Shift", shift_id)
        if not can_manage_shift(actor, shift):
            raise AuthorizationError("Only admins or the shift's crew chief can open a timesheet")

        live = (
            db.query(Timesheet)
            .filter(Timesheet.shift_id == shift.id, Timesheet.status != TimesheetStatus.rejected.value)
            .first()
        )
        if live:
            raise InvalidStateError(
                f"Shift already has a timesheet ({live.id}, status={live.status})",
                current_status=live.status,
            )

        timesheet = Timesheet(shift_id=shift.id, status=TimesheetStatus.draft.value)
        db.add(timesheet)
        db.flush()
        log_action(db, actor.id, "timesheet.create", "timesheet", timesheet.id, {"shift_id": str(shift.id)})

    db.refresh(timesheet)
    logger.info("Timesheet %s created for shift %s by %s", timesheet.id, shift_id, actor.id)
    return timesheet


def submit(db: Session, timesheet_id: uuid.UUID, actor: User, store: PdfStore) -> Timesheet:
    """DRAFT -> PENDING_COMPANY_APPROVAL, storing the unsigned PDF snapshot."""
    with _transaction(db, timesheet_id):
        timesheet = _load_for_update(db, timesheet_id)
        if timesheet.status != TimesheetStatus.draft.value:
            raise InvalidStateError(
                f"Only draft timesheets can be submitted (status={timesheet.status})",
                current_status=timesheet.status,
            )
        shift = timesheet.shift
        if not can_manage_shift(actor, shift):
            raise AuthorizationError("Only admins or the shift's crew chief can submit a timesheet")

        open_entries = (
            db.query(TimeEntry)
            .join(AssignedPersonnel, TimeEntry.assigned_personnel_id == AssignedPersonnel.id)
            .filter(AssignedPersonnel.shift_id == shift.id, TimeEntry.clock_out.is_(None))
            .count()
        )
        if open_entries:
            raise ValidationError(
                f"Cannot submit timesheet. {open_entries} workers have not clocked out yet."
            )
        _check_entry_order(shift)

        document = build_timesheet_document(timesheet, PdfKind.unsigned)
        key = store.put(pdf_key(timesheet.id, PdfKind.unsigned.value), render_timesheet_pdf(document))

        timesheet.unsigned_pdf_key = key
        timesheet.submitted_by = actor.id
        timesheet.submitted_at = _now_utc()
        timesheet.status = TimesheetStatus.pending_company_approval.value
        log_action(db, actor.id, "timesheet.submit", "timesheet", timesheet.id, {"pdf_key": key})

    db.refresh(timesheet)
    logger.info("Timesheet %s submitted by %s", timesheet.id, actor.id)
    return timesheet


def approve(
    db: Session,
    timesheet_id: uuid.UUID,
    actor: User,
    signature: Optional[str],
    stage,
    store: PdfStore,
    notes: Optional[str] = None,
) -> Timesheet:
    """
    Sign the current stage and advance the timesheet.

    company: PENDING_COMPANY_APPROVAL -> PENDING_MANAGER_APPROVAL, signed PDF
    manager: PENDING_MANAGER_APPROVAL -> COMPLETED, final PDF, shift Completed

    Raises InvalidStateError when ``stage`` is not the timesheet's pending
    stage, AuthorizationError when the actor may not sign it, ValidationError
    for a missing or unreadable signature and DependencyFailure when the PDF
    cannot be produced or stored.
    """
    stage = _parse_stage(stage)

    with _transaction(db, timesheet_id):
        timesheet = _load_for_update(db, timesheet_id)
        pending = _require_pending(timesheet)
        if pending != stage:
            raise InvalidStateError(
                f"Timesheet is awaiting {pending.value} approval, not {stage.value}",
                current_status=timesheet.status,
            )
        if not can_act_at_stage(actor, timesheet, stage):
            raise AuthorizationError(f"Insufficient permissions for {stage.value} approval")

        sig = parse_signature(signature)
        now = _now_utc()
        kind = STAGE_PDF[stage]

        if stage == ApprovalStage.company:
            document = build_timesheet_document(
                timesheet, kind, company_signature=sig.raw, company_approved_at=now,
            )
        else:
            document = build_timesheet_document(
                timesheet, kind, manager_signature=sig.raw, manager_approved_at=now,
            )
        key = store.put(pdf_key(timesheet.id, kind.value), render_timesheet_pdf(document))

        # signature, stamp, status and PDF reference land in one commit
        if stage == ApprovalStage.company:
            timesheet.company_signature = sig.raw
            timesheet.company_approved_at = now
            timesheet.company_approved_by = actor.id
            timesheet.company_notes = _clean_text(notes)
            timesheet.signed_pdf_key = key
        else:
            timesheet.manager_signature = sig.raw
            timesheet.manager_approved_at = now
            timesheet.manager_approved_by = actor.id
            timesheet.manager_notes = _clean_text(notes)
            timesheet.final_pdf_key = key
            timesheet.shift.status = ShiftStatus.completed.value

        previous = timesheet.status
        timesheet.status = NEXT_STATUS[stage].value
        log_action(
            db,
            actor.id,
            "timesheet.approve",
            "timesheet",
            timesheet.id,
            {"stage": stage.value, "from": previous, "to": timesheet.status, "pdf_key": key},
        )

    db.refresh(timesheet)
    logger.info("Timesheet %s %s-approved by %s -> %s", timesheet.id, stage.value, actor.id, timesheet.status)
    return timesheet


def reject(
    db: Session,
    timesheet_id: uuid.UUID,
    actor: User,
    reason: Optional[str],
    notes: Optional[str] = None,
) -> Timesheet:
    """Move a pending timesheet to REJECTED. No PDF is regenerated."""
    with _transaction(db, timesheet_id):
        timesheet = _load_for_update(db, timesheet_id)
        stage = _require_pending(timesheet)
        if not can_act_at_stage(actor, timesheet, stage):
            raise AuthorizationError(f"Insufficient permissions to reject at {stage.value} stage")

        reason = _clean_text(reason)
        if not reason:
            raise ValidationError("Rejection reason is required")
        if len(reason) > MAX_REASON_LEN:
            raise ValidationError(f"Rejection reason too long (max {MAX_REASON_LEN} chars)")

        timesheet.status = TimesheetStatus.rejected.value
        timesheet.rejection_reason = reason
        timesheet.rejected_at = _now_utc()
        timesheet.rejected_by = actor.id
        timesheet.rejected_stage = stage.value
        if stage == ApprovalStage.company:
            timesheet.company_notes = _clean_text(notes) or timesheet.company_notes
        else:
            timesheet.manager_notes = _clean_text(notes) or timesheet.manager_notes
        log_action(
            db,
            actor.id,
            "timesheet.reject",
            "timesheet",
            timesheet.id,
            {"stage": stage.value, "reason": reason},
        )

    db.refresh(timesheet)
    logger.info("Timesheet %s rejected at %s stage by %s", timesheet.id, stage.value, actor.id)
    return timesheet


def latest_pdf_key(timesheet: Timesheet) -> Optional[str]:
    """Most advanced PDF available: final, then signed, then unsigned."""
    return timesheet.final_pdf_key or timesheet.signed_pdf_key or timesheet.unsigned_pdf_key


def get_timesheet_pdf_url(timesheet: Timesheet, store: PdfStore) -> tuple[str, str]:
    """(key, presigned url) of the most advanced PDF; InvalidStateError before submission."""
    key = latest_pdf_key(timesheet)
    if not key:
        raise InvalidStateError(
            "No PDF generated yet (submit the timesheet first)",
            current_status=timesheet.status,
        )
    return key, store.download_url(key)
