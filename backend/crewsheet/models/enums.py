import enum


# ---------------------------------------------------------
# Enums (kept as string values; columns are plain String)
# ---------------------------------------------------------

class RoleCode(str, enum.Enum):
    crew_chief = "CC"
    stagehand = "SH"
    fork_operator = "FO"
    reach_fork_operator = "RFO"
    rigger = "RG"
    general_laborer = "GL"


class UserRole(str, enum.Enum):
    staff = "Staff"
    admin = "Admin"
    company_user = "CompanyUser"
    crew_chief = "CrewChief"
    employee = "Employee"


class JobStatus(str, enum.Enum):
    pending = "Pending"
    active = "Active"
    on_hold = "OnHold"
    completed = "Completed"
    cancelled = "Cancelled"


class ShiftStatus(str, enum.Enum):
    pending = "Pending"
    active = "Active"
    in_progress = "InProgress"
    completed = "Completed"
    cancelled = "Cancelled"


class WorkerStatus(str, enum.Enum):
    assigned = "Assigned"
    clocked_in = "ClockedIn"
    on_break = "OnBreak"
    clocked_out = "ClockedOut"
    shift_ended = "ShiftEnded"
    no_show = "NoShow"
    cancelled = "Cancelled"
    withdrawn = "Withdrawn"
    rejected = "Rejected"
    up_for_grabs = "UpForGrabs"


class TimesheetStatus(str, enum.Enum):
    draft = "DRAFT"
    pending_company_approval = "PENDING_COMPANY_APPROVAL"
    pending_manager_approval = "PENDING_MANAGER_APPROVAL"
    completed = "COMPLETED"
    rejected = "REJECTED"


class ApprovalStage(str, enum.Enum):
    company = "company"
    manager = "manager"


class FulfillmentBand(str, enum.Enum):
    critical = "CRITICAL"
    low = "LOW"
    good = "GOOD"
    full = "FULL"
    overstaffed = "OVERSTAFFED"


class PdfKind(str, enum.Enum):
    unsigned = "unsigned"
    signed = "signed"
    final = "final"


# Assignments in these states never count toward a filled slot.
NON_FILLING_STATUSES = frozenset({
    WorkerStatus.cancelled.value,
    WorkerStatus.withdrawn.value,
    WorkerStatus.rejected.value,
})

TERMINAL_TIMESHEET_STATUSES = frozenset({
    TimesheetStatus.completed.value,
    TimesheetStatus.rejected.value,
})

# role code -> (display name, Shift requirement column)
ROLE_DEFINITIONS = {
    RoleCode.crew_chief: ("Crew Chief", "required_crew_chiefs"),
    RoleCode.stagehand: ("Stage Hand", "required_stagehands"),
    RoleCode.fork_operator: ("Fork Operator", "required_fork_operators"),
    RoleCode.reach_fork_operator: ("Reach Fork Operator", "required_reach_fork_operators"),
    RoleCode.rigger: ("Rigger", "required_riggers"),
    RoleCode.general_laborer: ("General Labor", "required_general_laborers"),
}

# Display order used for listings and PDF rows
ROLE_ORDER = [
    RoleCode.crew_chief,
    RoleCode.rigger,
    RoleCode.reach_fork_operator,
    RoleCode.fork_operator,
    RoleCode.stagehand,
    RoleCode.general_laborer,
]


def role_name(code) -> str:
    try:
        return ROLE_DEFINITIONS[RoleCode(code)][0]
    except ValueError:
        return str(code)


def requirement_field(code: RoleCode) -> str:
    return ROLE_DEFINITIONS[code][1]
