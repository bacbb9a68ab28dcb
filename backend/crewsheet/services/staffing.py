"""
Staffing calculator: required vs. filled worker counts for a shift.

Pure functions over a "shift-like" record: anything exposing the six
``required_*`` counts (attributes or mapping keys) and an
``assigned_personnel`` list whose items carry ``role_code``, ``status`` and
``user_id``. Nothing here touches the database or mutates its input.

Malformed counts never raise: None / missing / negative are read as 0 so
fulfillment can still be displayed for half-entered shifts.
"""

from collections import Counter
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Iterable, Optional

from crewsheet.models.enums import (
    FulfillmentBand,
    NON_FILLING_STATUSES,
    ROLE_DEFINITIONS,
    RoleCode,
    requirement_field,
)

# Lower bounds of each band (inclusive), best band first
OVERSTAFFED_ABOVE = Fraction(11, 10)  # strictly greater
FULL_AT = Fraction(1)
GOOD_AT = Fraction(8, 10)
LOW_AT = Fraction(6, 10)


@dataclass(frozen=True)
class RoleShortage:
    role_code: str
    role_name: str
    required: int
    assigned: int
    needed: int


@dataclass(frozen=True)
class StaffingSummary:
    required_total: int
    filled_total: int
    fulfillment_band: FulfillmentBand
    per_role_shortages: list[RoleShortage] = field(default_factory=list)

    @property
    def fully_staffed(self) -> bool:
        return not self.per_role_shortages

    @property
    def display(self) -> str:
        return f"{self.filled_total} of {self.required_total} Workers Assigned"


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def _get(record: Any, name: str, default=None):
    if record is None:
        return default
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _count(value) -> int:
    try:
        n = int(value or 0)
    except (TypeError, ValueError):
        return 0
    return max(n, 0)


def _assignments(shift: Any) -> list:
    return list(_get(shift, "assigned_personnel", None) or [])


# ──────────────────────────────────────────────
# Operations
# ──────────────────────────────────────────────

def required_by_role(shift: Any) -> dict[RoleCode, int]:
    return {code: _count(_get(shift, requirement_field(code))) for code in ROLE_DEFINITIONS}


def compute_required_total(shift: Any) -> int:
    """Sum of the six role requirement counts.

    When every role count is zero the legacy ``requested_workers`` total is
    used instead, so older shifts without a per-role breakdown still show a
    denominator.
    """
    total = sum(required_by_role(shift).values())
    if total > 0:
        return total
    return _count(_get(shift, "requested_workers"))


def counts_as_filled(assignment: Any) -> bool:
    """A valid assignment: has a worker and is not cancelled, withdrawn or rejected."""
    if assignment is None or _get(assignment, "user_id") is None:
        return False
    status = _get(assignment, "status")
    status = getattr(status, "value", status)
    return status not in NON_FILLING_STATUSES


def compute_filled_total(assigned_personnel: Optional[Iterable[Any]]) -> int:
    return sum(1 for a in (assigned_personnel or []) if counts_as_filled(a))


def filled_by_role(assigned_personnel: Optional[Iterable[Any]]) -> Counter:
    counts: Counter = Counter()
    for a in assigned_personnel or []:
        if counts_as_filled(a):
            code = _get(a, "role_code")
            counts[getattr(code, "value", code)] += 1
    return counts


def classify_fulfillment(filled: int, required: int) -> FulfillmentBand:
    """Band a staffing ratio. Each threshold is inclusive on its lower bound."""
    filled = _count(filled)
    required = _count(required)
    if required == 0:
        return FulfillmentBand.full

    ratio = Fraction(filled, required)
    if ratio > OVERSTAFFED_ABOVE:
        return FulfillmentBand.overstaffed
    if ratio >= FULL_AT:
        return FulfillmentBand.full
    if ratio >= GOOD_AT:
        return FulfillmentBand.good
    if ratio >= LOW_AT:
        return FulfillmentBand.low
    return FulfillmentBand.critical


def workers_needed_by_role(shift: Any) -> list[RoleShortage]:
    """Per-role shortages; a surplus in one role never offsets another role."""
    filled = filled_by_role(_assignments(shift))
    shortages = []
    for code, required in required_by_role(shift).items():
        if required == 0:
            continue
        name, _ = ROLE_DEFINITIONS[code]
        assigned = filled.get(code.value, 0)
        needed = max(0, required - assigned)
        if needed > 0:
            shortages.append(RoleShortage(
                role_code=code.value,
                role_name=name,
                required=required,
                assigned=assigned,
                needed=needed,
            ))
    return shortages


def summarize_staffing(shift: Any) -> StaffingSummary:
    required = compute_required_total(shift)
    filled = compute_filled_total(_assignments(shift))
    return StaffingSummary(
        required_total=required,
        filled_total=filled,
        fulfillment_band=classify_fulfillment(filled, required),
        per_role_shortages=workers_needed_by_role(shift),
    )
