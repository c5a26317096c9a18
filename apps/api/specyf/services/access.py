from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.orm import Session

from specyf.models import Event, User
from specyf.models.user import UserRole
from specyf.services.error_codes import ErrorCode
from specyf.services.exceptions import NotFoundError, PermissionDeniedError


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


def require_organizer(user: User) -> None:
    if user.role not in {UserRole.ORGANIZER, UserRole.ADMIN}:
        raise PermissionDeniedError(
            ErrorCode.ORGANIZER_ROLE_REQUIRED.value, "only organizers or admins can manage events"
        )


def coerce_uuid(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def get_event_or_404(db: Session, event_id: Any) -> Event:
    key = coerce_uuid(event_id)
    event = db.get(Event, key) if key else None
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    return event


def get_managed_event(db: Session, user: User, event_id: Any) -> Event:
    """Load an event the user may manage: its organizer, or any admin."""
    event = get_event_or_404(db, event_id)
    if is_admin(user):
        return event
    if event.organizer_id != user.id:
        raise PermissionDeniedError(
            ErrorCode.NOT_EVENT_ORGANIZER.value, "not organizer for this event"
        )
    return event
