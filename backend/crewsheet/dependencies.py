"""
Request-scoped dependencies.

Authentication happens upstream (gateway / session layer); by the time a
request reaches this service the caller's id is in the X-User-Id header.
"""

import uuid
from fastapi import HTTPException, Header, Depends
from sqlalchemy.orm import Session
from typing import Optional

from crewsheet.database import get_db
from crewsheet.models.user import User


def _as_uuid(value) -> uuid.UUID:
    if value is None:
        raise ValueError("None is not a UUID")
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the acting user from X-User-Id."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        user_uuid = _as_uuid(x_user_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-User-Id (must be UUID)")

    user = db.query(User).filter(User.id == user_uuid).first()
    if not user or user.is_active is False:
        raise HTTPException(status_code=401, detail="User not found or disabled")

    return user
