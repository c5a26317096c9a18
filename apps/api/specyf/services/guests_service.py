from __future__ import annotations

import csv
import io
import secrets
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.guests import GuestCreate, GuestUpdate
from specyf.core.config import settings
from specyf.models import Event, Guest, User
from specyf.models.base import utcnow
from specyf.models.event import EventStatus
from specyf.models.guest import GuestStatus
from specyf.realtime import publish_event_update
from specyf.services import billing_service
from specyf.services.access import coerce_uuid, get_managed_event, is_admin
from specyf.services.error_codes import ErrorCode
from specyf.services.events_service import confirmed_count
from specyf.services.exceptions import ConflictError, NotFoundError, ServiceError, ValidationError
from specyf.services.guest_import import ParsedGuest, dedupe

logger = structlog.get_logger(__name__)


def new_response_token() -> str:
    return secrets.token_urlsafe(24)


def response_url(guest: Guest) -> str:
    return f"{settings.public_base_url}/guest/response/{guest.event_id}/{guest.response_token}"


def _guest_count(db: Session, event_id: Any) -> int:
    return int(db.scalar(select(func.count()).select_from(Guest).where(Guest.event_id == event_id)) or 0)


def _guest_capacity_left(db: Session, user: User, event: Event) -> int | None:
    if is_admin(user):
        return None
    limits = billing_service.plan_limits_for(db, user)
    if limits.max_guests_per_event is None:
        return None
    return max(0, limits.max_guests_per_event - _guest_count(db, event.id))


def get_guest_or_404(db: Session, event: Event, guest_id: Any) -> Guest:
    key = coerce_uuid(guest_id)
    guest = db.get(Guest, key) if key else None
    if guest is None or guest.event_id != event.id:
        raise NotFoundError(ErrorCode.GUEST_NOT_FOUND.value, "guest not found")
    return guest


def add_guest(db: Session, user: User, event_id: Any, payload: GuestCreate) -> Guest:
    event = get_managed_event(db, user, event_id)

    left = _guest_capacity_left(db, user, event)
    if left is not None and left <= 0:
        raise ConflictError(ErrorCode.PLAN_LIMIT_REACHED.value, "guest limit reached for your plan")

    if payload.status == GuestStatus.CONFIRMED:
        _ensure_spot_available(db, _lock_event(db, event.id))

    guest = Guest(
        event_id=event.id,
        name=payload.name,
        email=str(payload.email).strip().lower(),
        status=payload.status,
        response_date=utcnow() if payload.status != GuestStatus.PENDING else None,
        response_token=new_response_token(),
    )
    db.add(guest)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(
            ErrorCode.GUEST_ALREADY_INVITED.value, "a guest with this email is already invited"
        ) from exc

    db.refresh(guest)
    logger.info("guest_added", event_id=str(event.id), guest_id=str(guest.id))
    return guest


def bulk_add(
    db: Session,
    user: User,
    event_ids: Iterable[Any],
    guests: list[ParsedGuest],
) -> list[dict[str, Any]]:
    """Add the same guest list to several events, skipping emails already invited.

    A failure on one event is reported in its result and does not stop the others.
    Confirmed rows beyond an event's max_guests are added as pending.
    """
    guests = dedupe(guests)
    results: list[dict[str, Any]] = []

    for event_id in event_ids:
        try:
            event = get_managed_event(db, user, event_id)
        except ServiceError as exc:
            results.append(
                {
                    "event_id": event_id,
                    "event_title": None,
                    "added": 0,
                    "skipped": len(guests),
                    "errors": [exc.message],
                }
            )
            continue

        result: dict[str, Any] = {
            "event_id": event.id,
            "event_title": event.title,
            "added": 0,
            "skipped": 0,
            "errors": [],
        }

        existing = {
            email.lower()
            for email in db.scalars(select(Guest.email).where(Guest.event_id == event.id)).all()
        }
        unique = [g for g in guests if g.email not in existing]
        result["skipped"] = len(guests) - len(unique)

        left = _guest_capacity_left(db, user, event)
        if left is not None and len(unique) > left:
            result["errors"].append(
                f"guest limit reached for your plan; {len(unique) - left} guests not added"
            )
            result["skipped"] += len(unique) - left
            unique = unique[:left]

        if unique:
            unique = _fit_confirmed_to_capacity(db, event, unique, result)
            now = utcnow()
            db.add_all(
                Guest(
                    event_id=event.id,
                    name=g.name,
                    email=g.email,
                    status=g.status,
                    response_date=now if g.status != GuestStatus.PENDING else None,
                    response_token=new_response_token(),
                )
                for g in unique
            )
            try:
                db.commit()
                result["added"] = len(unique)
            except IntegrityError as exc:
                db.rollback()
                logger.warning("bulk_add_failed", event_id=str(event.id), error=str(exc.orig))
                result["errors"].append("could not add guests; the guest list changed, please retry")

        results.append(result)

    logger.info(
        "guests_bulk_added",
        events=len(results),
        added=sum(r["added"] for r in results),
        skipped=sum(r["skipped"] for r in results),
    )
    return results


def list_guests(
    db: Session,
    user: User,
    event_id: Any,
    *,
    status: GuestStatus | None = None,
    query: str | None = None,
) -> list[Guest]:
    event = get_managed_event(db, user, event_id)
    stmt = select(Guest).where(Guest.event_id == event.id)
    if status is not None:
        stmt = stmt.where(Guest.status == status)
    if query:
        like = f"%{query.strip().lower()}%"
        stmt = stmt.where(or_(func.lower(Guest.name).like(like), Guest.email.like(like)))
    return list(db.scalars(stmt.order_by(Guest.created_at, Guest.name)).all())


def get_guest(db: Session, user: User, event_id: Any, guest_id: Any) -> Guest:
    event = get_managed_event(db, user, event_id)
    return get_guest_or_404(db, event, guest_id)


def update_guest(db: Session, user: User, event_id: Any, guest_id: Any, patch: GuestUpdate) -> Guest:
    event = get_managed_event(db, user, event_id)
    guest = get_guest_or_404(db, event, guest_id)

    patch_data = patch.model_dump(exclude_unset=True)
    if patch_data.get("email") is not None:
        patch_data["email"] = str(patch_data["email"]).strip().lower()
    if patch_data.get("name") is not None:
        patch_data["name"] = patch_data["name"].strip()

    new_status = patch_data.get("status")
    if new_status is not None and new_status != guest.status:
        if new_status == GuestStatus.CONFIRMED:
            _ensure_spot_available(db, _lock_event(db, event.id))
        patch_data["response_date"] = utcnow() if new_status != GuestStatus.PENDING else None

    for key, value in patch_data.items():
        if value is None and key in {"name", "email", "status"}:
            continue
        setattr(guest, key, value)

    db.add(guest)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(
            ErrorCode.GUEST_ALREADY_INVITED.value, "a guest with this email is already invited"
        ) from exc
    db.refresh(guest)
    return guest


def delete_guest(db: Session, user: User, event_id: Any, guest_id: Any) -> None:
    event = get_managed_event(db, user, event_id)
    guest = get_guest_or_404(db, event, guest_id)
    db.delete(guest)
    db.commit()
    logger.info("guest_removed", event_id=str(event.id), guest_id=str(guest.id))


def _ensure_spot_available(db: Session, event: Event) -> None:
    if event.max_guests is not None and confirmed_count(db, event.id) >= event.max_guests:
        raise ConflictError(ErrorCode.EVENT_FULL.value, "event is full")


def _fit_confirmed_to_capacity(
    db: Session,
    event: Event,
    guests: list[ParsedGuest],
    result: dict[str, Any],
) -> list[ParsedGuest]:
    wanted = sum(1 for g in guests if g.status == GuestStatus.CONFIRMED)
    if not wanted:
        return guests
    event = _lock_event(db, event.id)
    if event.max_guests is None:
        return guests

    spots = max(0, event.max_guests - confirmed_count(db, event.id))
    if wanted <= spots:
        return guests

    overflow = wanted - spots
    fitted: list[ParsedGuest] = []
    for g in guests:
        if g.status == GuestStatus.CONFIRMED:
            if spots > 0:
                spots -= 1
            else:
                g = replace(g, status=GuestStatus.PENDING)
        fitted.append(g)
    result["errors"].append(f"event is full; {overflow} confirmed guests added as pending")
    return fitted


def _lock_event(db: Session, event_id: Any) -> Event:
    event = db.scalar(select(Event).where(Event.id == event_id).with_for_update())
    if event is None:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    return event


def record_response(
    db: Session,
    guest: Guest,
    status: GuestStatus,
    message: str | None = None,
) -> Guest:
    """Record a guest's RSVP. Confirming is refused once the event is at max_guests."""
    if status == GuestStatus.PENDING:
        raise ValidationError(ErrorCode.GUEST_INVALID_STATUS.value, "response must be confirmed or declined")

    event = _lock_event(db, guest.event_id)
    if event.status == EventStatus.CANCELLED:
        raise ConflictError(ErrorCode.EVENT_CANCELLED.value, "event is cancelled")
    if event.status == EventStatus.DRAFT:
        raise ConflictError(ErrorCode.EVENT_NOT_OPEN.value, "event is not open for responses")

    if status == GuestStatus.CONFIRMED and guest.status != GuestStatus.CONFIRMED:
        _ensure_spot_available(db, event)

    guest.status = status
    guest.response_date = utcnow()
    if message is not None:
        guest.message = message.strip() or None
    db.add(guest)
    db.commit()
    db.refresh(guest)

    logger.info("rsvp_recorded", event_id=str(event.id), guest_id=str(guest.id), status=status.value)
    publish_event_update(
        event.id,
        "guest_responded",
        {"guest_id": str(guest.id), "status": status.value},
    )
    return guest


def respond_by_token(
    db: Session,
    event_id: Any,
    token: str,
    status: GuestStatus,
    message: str | None = None,
) -> Guest:
    guest = get_guest_by_token(db, event_id, token)
    return record_response(db, guest, status, message)


def get_guest_by_token(db: Session, event_id: Any, token: str) -> Guest:
    guest = db.scalar(select(Guest).where(Guest.response_token == token))
    if guest is None or guest.event_id != coerce_uuid(event_id):
        raise NotFoundError(ErrorCode.GUEST_NOT_FOUND.value, "invitation not found")
    return guest


def invitations_for_email(db: Session, email: str) -> list[tuple[Guest, Event]]:
    rows = db.execute(
        select(Guest, Event)
        .join(Event, Event.id == Guest.event_id)
        .where(Guest.email == email.strip().lower(), Event.status != EventStatus.DRAFT)
        .order_by(Event.starts_at.is_(None), Event.starts_at)
    ).all()
    return [(guest, event) for guest, event in rows]


def status_counts(db: Session, event_ids: list[Any]) -> dict[GuestStatus, int]:
    counts = {status: 0 for status in GuestStatus}
    if not event_ids:
        return counts
    rows = db.execute(
        select(Guest.status, func.count())
        .where(Guest.event_id.in_(event_ids))
        .group_by(Guest.status)
    ).all()
    for status, count in rows:
        counts[status] = int(count)
    return counts


def event_stats(db: Session, user: User, event_id: Any) -> dict[str, Any]:
    event = get_managed_event(db, user, event_id)
    counts = status_counts(db, [event.id])
    total = sum(counts.values())
    responded = counts[GuestStatus.CONFIRMED] + counts[GuestStatus.DECLINED]
    spots_left = None
    if event.max_guests is not None:
        spots_left = max(0, event.max_guests - counts[GuestStatus.CONFIRMED])
    return {
        "event_id": event.id,
        "total": total,
        "confirmed": counts[GuestStatus.CONFIRMED],
        "declined": counts[GuestStatus.DECLINED],
        "pending": counts[GuestStatus.PENDING],
        "response_rate": round(responded / total, 4) if total else 0.0,
        "max_guests": event.max_guests,
        "spots_left": spots_left,
    }


def dashboard_summary(db: Session, user: User) -> dict[str, int]:
    stmt = select(Event.id, Event.starts_at).where(Event.status != EventStatus.CANCELLED)
    if not is_admin(user):
        stmt = stmt.where(Event.organizer_id == user.id)
    rows = db.execute(stmt).all()

    now = utcnow()
    event_ids = [row.id for row in rows]
    counts = status_counts(db, event_ids)
    return {
        "total_events": len(rows),
        "upcoming_events": sum(1 for row in rows if row.starts_at and row.starts_at >= now),
        "total_guests": sum(counts.values()),
        "confirmed": counts[GuestStatus.CONFIRMED],
        "declined": counts[GuestStatus.DECLINED],
        "pending": counts[GuestStatus.PENDING],
    }


def export_csv(db: Session, user: User, event_id: Any) -> str:
    guests = list_guests(db, user, event_id)
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["Name", "Email", "Status", "Responded At", "Message"])
    for guest in guests:
        writer.writerow(
            [
                guest.name,
                guest.email,
                guest.status.value,
                guest.response_date.isoformat() if guest.response_date else "",
                guest.message or "",
            ]
        )
    return buffer.getvalue()


def guest_for_event(db: Session, email: str, event_id: Any) -> tuple[Guest, Event]:
    """The invitation a signed-in guest holds for an event."""
    key = coerce_uuid(event_id)
    row = None
    if key is not None:
        row = db.execute(
            select(Guest, Event)
            .join(Event, Event.id == Guest.event_id)
            .where(Guest.email == email.strip().lower(), Event.id == key)
        ).first()
    if row is None or row[1].status == EventStatus.DRAFT:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "invitation not found")
    return row[0], row[1]
