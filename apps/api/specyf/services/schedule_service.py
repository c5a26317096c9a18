from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.schedule import SubEventCreate, SubEventUpdate
from specyf.models import SubEvent, User
from specyf.services.access import coerce_uuid, get_managed_event
from specyf.services.error_codes import ErrorCode
from specyf.services.exceptions import NotFoundError, ValidationError


def _get_sub_event(db: Session, event_id: Any, sub_event_id: Any) -> SubEvent:
    key = coerce_uuid(sub_event_id)
    item = db.get(SubEvent, key) if key else None
    if item is None or item.event_id != event_id:
        raise NotFoundError(ErrorCode.SUB_EVENT_NOT_FOUND.value, "schedule item not found")
    return item


def schedule_for_event(db: Session, event_id: Any) -> list[SubEvent]:
    return list(
        db.scalars(
            select(SubEvent).where(SubEvent.event_id == event_id).order_by(SubEvent.starts_at, SubEvent.title)
        ).all()
    )


def list_sub_events(db: Session, user: User, event_id: Any) -> list[SubEvent]:
    event = get_managed_event(db, user, event_id)
    return schedule_for_event(db, event.id)


def create_sub_event(db: Session, user: User, event_id: Any, payload: SubEventCreate) -> SubEvent:
    event = get_managed_event(db, user, event_id)
    item = SubEvent(event_id=event.id, **payload.model_dump())
    item.title = item.title.strip()
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_sub_event(
    db: Session, user: User, event_id: Any, sub_event_id: Any, patch: SubEventUpdate
) -> SubEvent:
    event = get_managed_event(db, user, event_id)
    item = _get_sub_event(db, event.id, sub_event_id)

    patch_data = patch.model_dump(exclude_unset=True)
    for key in ("title", "starts_at", "ends_at"):
        if key in patch_data and patch_data[key] is None:
            del patch_data[key]

    starts_at = patch_data.get("starts_at", item.starts_at)
    ends_at = patch_data.get("ends_at", item.ends_at)
    if ends_at <= starts_at:
        raise ValidationError(ErrorCode.EVENT_INVALID_TIMES.value, "ends_at must be after starts_at")

    for key, value in patch_data.items():
        setattr(item, key, value)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def delete_sub_event(db: Session, user: User, event_id: Any, sub_event_id: Any) -> None:
    event = get_managed_event(db, user, event_id)
    item = _get_sub_event(db, event.id, sub_event_id)
    db.delete(item)
    db.commit()
