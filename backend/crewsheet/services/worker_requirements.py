"""
Worker requirement vectors: the six per-role counts stored on a shift.

Vectors are validated here, at construction time, and the minimum crew
chief policy (``MIN_CREW_CHIEFS``, default 1) is applied here as well, so
the staffing calculator can stay a pure reader.
"""

import logging
import os
import uuid
from typing import Any, Mapping, Optional, Union

from sqlalchemy.orm import Session

from crewsheet.exceptions import AuthorizationError, NotFoundError, ValidationError
from crewsheet.models.enums import ROLE_DEFINITIONS, RoleCode, requirement_field
from crewsheet.models.shift import Shift
from crewsheet.models.user import User
from crewsheet.services.audit import log_action

logger = logging.getLogger(__name__)

MIN_CREW_CHIEFS = int(os.getenv("MIN_CREW_CHIEFS", "1"))

RequirementInput = Union[Mapping[str, Any], list]


def _parse_role(code) -> RoleCode:
    try:
        return RoleCode(getattr(code, "value", code))
    except ValueError:
        raise ValidationError(f"Unknown role code: {code!r}")


def _parse_count(code: RoleCode, value) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        try:
            value = int(str(value).strip())
        except ValueError:
            raise ValidationError(f"Required count for {code.value} must be an integer")
    if value < 0:
        raise ValidationError(f"Required count for {code.value} cannot be negative")
    return value


def build_requirement_vector(
    counts: RequirementInput,
    min_crew_chiefs: Optional[int] = None,
) -> dict[RoleCode, int]:
    """
    Normalize requirement input into a full six-role vector.

    Accepts either ``{"SH": 4, "FO": 1}`` or the list form the UI sends,
    ``[{"roleCode": "SH", "requiredCount": 4}, ...]``. Roles not mentioned
    default to 0. The crew chief count is raised to ``min_crew_chiefs``.
    """
    if min_crew_chiefs is None:
        min_crew_chiefs = MIN_CREW_CHIEFS
    if min_crew_chiefs < 0:
        raise ValidationError("Minimum crew chief count cannot be negative")

    if isinstance(counts, Mapping):
        items = list(counts.items())
    elif isinstance(counts, list):
        items = []
        for req in counts:
            if not isinstance(req, Mapping):
                raise ValidationError("Each requirement must be an object with roleCode and requiredCount")
            code = req.get("roleCode", req.get("role_code"))
            count = req.get("requiredCount", req.get("required_count"))
            items.append((code, count))
    else:
        raise ValidationError("Requirements must be a mapping or a list")

    vector = {code: 0 for code in ROLE_DEFINITIONS}
    for raw_code, raw_count in items:
        code = _parse_role(raw_code)
        vector[code] = _parse_count(code, raw_count)

    vector[RoleCode.crew_chief] = max(vector[RoleCode.crew_chief], min_crew_chiefs)
    return vector


def apply_requirement_vector(shift: Shift, vector: Mapping[RoleCode, int]) -> None:
    for code, count in vector.items():
        setattr(shift, requirement_field(code), count)


def update_worker_requirements(
    db: Session,
    shift_id: uuid.UUID,
    counts: RequirementInput,
    actor: User,
) -> Shift:
    if not actor.is_admin:
        raise AuthorizationError("Only admins can change worker requirements")

    shift = db.query(Shift).filter(Shift.id == shift_id).first()
    if not shift:
        raise NotFoundError("Shift", shift_id)

    vector = build_requirement_vector(counts)
    apply_requirement_vector(shift, vector)
    log_action(
        db,
        actor.id,
        "shift.requirements_update",
        "shift",
        shift.id,
        {code.value: count for code, count in vector.items()},
    )
    db.commit()
    db.refresh(shift)

    logger.info("Worker requirements updated for shift %s: %s", shift.id,
                {code.value: count for code, count in vector.items()})
    return shift
