import uuid
from typing import Any, Optional

from sqlalchemy.orm import Session

from crewsheet.models.audit_log import AuditLog


def _as_uuid(value: Any) -> Optional[uuid.UUID]:
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError):
        return None


def log_action(
    db: Session,
    actor_id: Any,
    action: str,
    resource_type: str,
    resource_id: Any = None,
    details: dict | None = None,
) -> AuditLog:
    """
    Stage an audit row in the caller's transaction.

    Does not commit: the row lands together with the change it describes,
    or not at all when that change is rolled back.
    """
    entry = AuditLog(
        actor_id=_as_uuid(actor_id),
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details.copy() if isinstance(details, dict) else {},
    )
    db.add(entry)
    return entry
