from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Any

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.events import EventCreate, EventUpdate
from specyf.models import Event, Guest, User
from specyf.models.base import utcnow
from specyf.models.event import EventStatus
from specyf.models.guest import GuestStatus
from specyf.services import billing_service
from specyf.services.access import (
    coerce_uuid,
    get_managed_event,
    is_admin,
    require_organizer,
)
from specyf.services.error_codes import ErrorCode
from specyf.services.exceptions import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

PUBLIC_STATUSES = {EventStatus.PUBLISHED, EventStatus.COMPLETED}
INVITATION_CODE_ATTEMPTS = 3


def generate_invitation_code() -> str:
    return secrets.token_urlsafe(9).replace("-", "").replace("_", "")


def confirmed_count(db: Session, event_id: Any) -> int:
    return int(
        db.scalar(
            select(func.count())
            .select_from(Guest)
            .where(Guest.event_id == event_id, Guest.status == GuestStatus.CONFIRMED)
        )
        or 0
    )


def _active_event_count(db: Session, organizer_id: Any) -> int:
    return int(
        db.scalar(
            select(func.count())
            .select_from(Event)
            .where(Event.organizer_id == organizer_id, Event.status != EventStatus.CANCELLED)
        )
        or 0
    )


def _check_time_bounds(starts_at: datetime | None, ends_at: datetime | None) -> None:
    if starts_at and ends_at and ends_at <= starts_at:
        raise ValidationError(ErrorCode.EVENT_INVALID_TIMES.value, "ends_at must be after starts_at")


def create_event(db: Session, organizer: User, payload: EventCreate) -> Event:
    require_organizer(organizer)

    if payload.status == EventStatus.CANCELLED:
        raise ValidationError(ErrorCode.EVENT_INVALID_STATUS.value, "cannot create a cancelled event")
    _check_time_bounds(payload.starts_at, payload.ends_at)

    if not is_admin(organizer):
        limits = billing_service.plan_limits_for(db, organizer)
        if limits.max_events is not None and _active_event_count(db, organizer.id) >= limits.max_events:
            raise ConflictError(
                ErrorCode.PLAN_LIMIT_REACHED.value,
                f"the {limits.plan_id} plan allows {limits.max_events} active events",
            )

    attempts = 1 if payload.invitation_code else INVITATION_CODE_ATTEMPTS
    for attempt in range(attempts):
        event = Event(
            organizer_id=organizer.id,
            title=payload.title,
            description=payload.description,
            event_type=payload.event_type,
            location=payload.location,
            starts_at=payload.starts_at,
            ends_at=payload.ends_at,
            max_guests=payload.max_guests,
            is_public=payload.is_public,
            status=payload.status or EventStatus.PUBLISHED,
            invitation_code=payload.invitation_code or generate_invitation_code(),
        )
        db.add(event)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if attempt == attempts - 1:
                raise ConflictError(
                    ErrorCode.INVITATION_CODE_TAKEN.value, "invitation_code already exists"
                ) from exc
            continue
        break

    db.refresh(event)
    logger.info("event_created", event_id=str(event.id), organizer_id=str(organizer.id))
    return event


def list_events(
    db: Session,
    user: User,
    *,
    page: int = 1,
    page_size: int = 20,
    status: EventStatus | None = None,
    query: str | None = None,
    upcoming_only: bool = False,
) -> tuple[list[Event], int]:
    stmt = select(Event)
    if not is_admin(user):
        stmt = stmt.where(Event.organizer_id == user.id)
    if status is not None:
        stmt = stmt.where(Event.status == status)
    if query:
        like = f"%{query.strip().lower()}%"
        stmt = stmt.where(
            or_(func.lower(Event.title).like(like), func.lower(Event.location).like(like))
        )
    if upcoming_only:
        stmt = stmt.where(Event.starts_at >= utcnow())

    total = int(db.scalar(select(func.count()).select_from(stmt.subquery())) or 0)
    items = db.scalars(
        stmt.order_by(Event.starts_at.is_(None), Event.starts_at, Event.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    ).all()
    return list(items), total


def get_event(db: Session, user: User, event_id: Any) -> Event:
    return get_managed_event(db, user, event_id)


def update_event(db: Session, user: User, event_id: Any, patch: EventUpdate) -> Event:
    event = get_managed_event(db, user, event_id)

    patch_data = patch.model_dump(exclude_unset=True)
    if "title" in patch_data and patch_data["title"] is None:
        patch_data.pop("title")

    if patch_data.get("status") == EventStatus.CANCELLED:
        raise ValidationError(
            ErrorCode.EVENT_INVALID_STATUS.value, "use the cancel endpoint to cancel an event"
        )
    if event.status == EventStatus.CANCELLED and patch_data.get("status") is not None:
        raise ConflictError(ErrorCode.EVENT_CANCELLED.value, "event is cancelled")

    if patch_data.get("max_guests") is not None:
        if patch_data["max_guests"] < confirmed_count(db, event.id):
            raise ConflictError(
                ErrorCode.EVENT_CAPACITY_BELOW_CONFIRMED.value,
                "max_guests cannot be below current confirmed count",
            )

    _check_time_bounds(
        patch_data.get("starts_at", event.starts_at),
        patch_data.get("ends_at", event.ends_at),
    )

    for key, value in patch_data.items():
        setattr(event, key, value)

    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("event_updated", event_id=str(event.id), fields=sorted(patch_data))
    return event


def cancel_event(db: Session, user: User, event_id: Any) -> Event:
    event = get_managed_event(db, user, event_id)
    if event.status == EventStatus.CANCELLED:
        raise ConflictError(ErrorCode.EVENT_CANCELLED.value, "event is already cancelled")

    event.status = EventStatus.CANCELLED
    event.cancelled_at = utcnow()
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("event_cancelled", event_id=str(event.id))
    return event


def complete_event(db: Session, user: User, event_id: Any) -> Event:
    event = get_managed_event(db, user, event_id)
    if event.status == EventStatus.CANCELLED:
        raise ConflictError(ErrorCode.EVENT_CANCELLED.value, "event is cancelled")

    event.status = EventStatus.COMPLETED
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, user: User, event_id: Any) -> None:
    event = get_managed_event(db, user, event_id)
    db.delete(event)
    db.commit()
    logger.info("event_deleted", event_id=str(event.id))


def set_cover_image(db: Session, user: User, event_id: Any, uri: str) -> Event:
    event = get_managed_event(db, user, event_id)
    event.cover_image_uri = uri
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def get_public_event(db: Session, code: str) -> Event:
    """Resolve an invitation link: by invitation code first, then by event id."""
    event = db.scalar(select(Event).where(Event.invitation_code == code))
    if event is None:
        event_uuid = coerce_uuid(code)
        if event_uuid is not None:
            event = db.get(Event, event_uuid)
    if event is None or event.status not in PUBLIC_STATUSES:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    return event


def public_event_card(db: Session, event: Event) -> dict[str, Any]:
    organizer = db.get(User, event.organizer_id)
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "event_type": event.event_type,
        "location": event.location,
        "starts_at": event.starts_at,
        "ends_at": event.ends_at,
        "status": event.status,
        "cover_image_uri": event.cover_image_uri,
        "organizer_name": organizer.name if organizer else None,
    }


def events_starting_within(db: Session, window: timedelta) -> list[Event]:
    now = utcnow()
    return list(
        db.scalars(
            select(Event).where(
                Event.status == EventStatus.PUBLISHED,
                Event.starts_at.is_not(None),
                Event.starts_at > now,
                Event.starts_at <= now + window,
            )
        ).all()
    )
