from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from specyf.mail import EmailDeliveryError, OutgoingEmail, get_email_sender, render
from specyf.models import Announcement, EmailLog, Event, Guest, User
from specyf.models.base import utcnow
from specyf.models.email_log import EmailKind
from specyf.models.event import EventStatus
from specyf.models.guest import GuestStatus
from specyf.realtime import publish_event_update
from specyf.services.access import coerce_uuid, get_event_or_404, get_managed_event
from specyf.services.error_codes import ErrorCode
from specyf.services.events_service import events_starting_within
from specyf.services.exceptions import ConflictError, NotFoundError, ValidationError
from specyf.services.guests_service import response_url

logger = structlog.get_logger(__name__)

TEMPLATE_FOR_KIND = {
    EmailKind.INVITATION: "invitation.html",
    EmailKind.REMINDER: "reminder.html",
    EmailKind.ANNOUNCEMENT: "announcement.html",
}


def _subject(kind: EmailKind, event: Event, announcement: Announcement | None = None) -> str:
    if kind == EmailKind.INVITATION:
        return f"You're invited: {event.title}"
    if kind == EmailKind.REMINDER:
        return f"Reminder: {event.title}"
    return f"{event.title}: {announcement.title if announcement else 'Announcement'}"


def _select_guests(
    db: Session,
    event: Event,
    guest_ids: Sequence[Any],
    default_statuses: set[GuestStatus] | None,
) -> list[Guest]:
    stmt = select(Guest).where(Guest.event_id == event.id)
    if guest_ids:
        keys = [key for key in (coerce_uuid(g) for g in guest_ids) if key is not None]
        stmt = stmt.where(Guest.id.in_(keys))
    elif default_statuses:
        stmt = stmt.where(Guest.status.in_(default_statuses))
    return list(db.scalars(stmt.order_by(Guest.created_at)).all())


def deliver(
    db: Session,
    event: Event,
    guests: Sequence[Guest],
    kind: EmailKind,
    announcement: Announcement | None = None,
) -> dict[str, Any]:
    """Render and send one email per guest, then record an EmailLog row.

    A failed recipient is reported in the results and does not stop the batch.
    """
    sender = get_email_sender()
    organizer = db.get(User, event.organizer_id)
    subject = _subject(kind, event, announcement)
    template = TEMPLATE_FOR_KIND[kind]

    results: list[dict[str, Any]] = []
    for guest in guests:
        html = render(
            template,
            event=event,
            guest=guest,
            announcement=announcement,
            organizer_name=organizer.name if organizer else None,
            response_url=response_url(guest),
        )
        try:
            sender.send(OutgoingEmail(to_email=guest.email, to_name=guest.name, subject=subject, html=html))
            results.append({"email": guest.email, "success": True, "error": None})
        except EmailDeliveryError as exc:
            logger.warning("email_send_failed", event_id=str(event.id), to=guest.email, error=str(exc))
            results.append({"email": guest.email, "success": False, "error": str(exc)})

    success_count = sum(1 for r in results if r["success"])
    db.add(
        EmailLog(
            event_id=event.id,
            kind=kind,
            subject=subject,
            content=announcement.content if announcement else None,
            recipient_count=len(results),
            success_count=success_count,
            sent_at=utcnow(),
        )
    )
    db.commit()

    logger.info(
        "emails_sent",
        event_id=str(event.id),
        kind=kind.value,
        total=len(results),
        succeeded=success_count,
    )
    return {
        "kind": kind,
        "queued": False,
        "task_id": None,
        "results": results,
        "success_count": success_count,
        "total_count": len(results),
    }


def _enqueue(
    event: Event,
    guests: Sequence[Guest],
    kind: EmailKind,
    announcement: Announcement | None = None,
) -> dict[str, Any]:
    from specyf.worker.tasks import send_event_emails

    result = send_event_emails.delay(
        str(event.id),
        kind.value,
        [str(g.id) for g in guests],
        str(announcement.id) if announcement else None,
    )
    logger.info("emails_queued", event_id=str(event.id), kind=kind.value, total=len(guests), task_id=result.id)
    return {
        "kind": kind,
        "queued": True,
        "task_id": result.id,
        "results": [],
        "success_count": 0,
        "total_count": len(guests),
    }


def _ensure_sendable(event: Event) -> None:
    if event.status == EventStatus.CANCELLED:
        raise ConflictError(ErrorCode.EVENT_CANCELLED.value, "event is cancelled")


def _send(
    db: Session,
    event: Event,
    guests: list[Guest],
    kind: EmailKind,
    *,
    queue: bool,
    announcement: Announcement | None = None,
) -> dict[str, Any]:
    if queue:
        return _enqueue(event, guests, kind, announcement)
    return deliver(db, event, guests, kind, announcement)


def send_invitations(
    db: Session,
    user: User,
    event_id: Any,
    guest_ids: Sequence[Any] = (),
    *,
    queue: bool = False,
) -> dict[str, Any]:
    event = get_managed_event(db, user, event_id)
    _ensure_sendable(event)
    guests = _select_guests(db, event, guest_ids, default_statuses=None)
    if not guests:
        raise ValidationError(ErrorCode.NO_RECIPIENTS.value, "no guests to invite")
    return _send(db, event, guests, EmailKind.INVITATION, queue=queue)


def send_reminders(
    db: Session,
    user: User,
    event_id: Any,
    guest_ids: Sequence[Any] = (),
    *,
    queue: bool = False,
) -> dict[str, Any]:
    event = get_managed_event(db, user, event_id)
    _ensure_sendable(event)
    guests = _select_guests(db, event, guest_ids, default_statuses={GuestStatus.PENDING})
    if not guests:
        raise ValidationError(ErrorCode.NO_RECIPIENTS.value, "no guests to remind")
    return _send(db, event, guests, EmailKind.REMINDER, queue=queue)


def create_announcement(
    db: Session,
    user: User,
    event_id: Any,
    title: str,
    content: str,
    *,
    send_email: bool = True,
    queue: bool = False,
) -> tuple[Announcement, dict[str, Any] | None]:
    event = get_managed_event(db, user, event_id)
    _ensure_sendable(event)

    announcement = Announcement(event_id=event.id, title=title.strip(), content=content.strip())
    db.add(announcement)
    db.commit()
    db.refresh(announcement)

    logger.info("announcement_created", event_id=str(event.id), announcement_id=str(announcement.id))
    publish_event_update(
        event.id,
        "announcement_created",
        {"announcement_id": str(announcement.id), "title": announcement.title},
    )

    delivery = None
    if send_email:
        guests = _select_guests(db, event, (), default_statuses=None)
        if guests:
            delivery = _send(db, event, guests, EmailKind.ANNOUNCEMENT, queue=queue, announcement=announcement)
    return announcement, delivery


def announcements_for_event(db: Session, event_id: Any) -> list[Announcement]:
    return list(
        db.scalars(
            select(Announcement)
            .where(Announcement.event_id == event_id)
            .order_by(Announcement.created_at.desc())
        ).all()
    )


def list_announcements(db: Session, user: User, event_id: Any) -> list[Announcement]:
    event = get_managed_event(db, user, event_id)
    return announcements_for_event(db, event.id)


def delete_announcement(db: Session, user: User, event_id: Any, announcement_id: Any) -> None:
    event = get_managed_event(db, user, event_id)
    key = coerce_uuid(announcement_id)
    announcement = db.get(Announcement, key) if key else None
    if announcement is None or announcement.event_id != event.id:
        raise NotFoundError(ErrorCode.ANNOUNCEMENT_NOT_FOUND.value, "announcement not found")
    db.delete(announcement)
    db.commit()


def list_email_logs(db: Session, user: User, event_id: Any) -> list[EmailLog]:
    event = get_managed_event(db, user, event_id)
    return list(
        db.scalars(
            select(EmailLog).where(EmailLog.event_id == event.id).order_by(EmailLog.sent_at.desc())
        ).all()
    )


def deliver_by_ids(
    db: Session,
    event_id: Any,
    kind: EmailKind,
    guest_ids: Sequence[Any],
    announcement_id: Any | None = None,
) -> dict[str, Any]:
    """Worker entry point: reload rows by id and deliver."""
    event = get_event_or_404(db, event_id)
    announcement = None
    if announcement_id is not None:
        announcement = db.get(Announcement, coerce_uuid(announcement_id))
        if announcement is None:
            raise NotFoundError(ErrorCode.ANNOUNCEMENT_NOT_FOUND.value, "announcement not found")
    guests = _select_guests(db, event, guest_ids, default_statuses=None) if guest_ids else []
    return deliver(db, event, guests, kind, announcement)


def _reminded_since(db: Session, event: Event, since: datetime) -> bool:
    stmt = (
        select(EmailLog.id)
        .where(EmailLog.event_id == event.id, EmailLog.kind == EmailKind.REMINDER, EmailLog.sent_at >= since)
        .limit(1)
    )
    return db.scalar(stmt) is not None


def send_due_reminders(db: Session, window: timedelta = timedelta(hours=24)) -> int:
    """Remind pending guests of published events starting within window. Returns emails attempted.

    An event that already had a reminder batch inside the window is skipped, so the
    hourly schedule sends at most one reminder per event.
    """
    since = utcnow() - window
    attempted = 0
    for event in events_starting_within(db, window):
        if _reminded_since(db, event, since):
            continue
        guests = _select_guests(db, event, (), default_statuses={GuestStatus.PENDING})
        if not guests:
            continue
        batch = deliver(db, event, guests, EmailKind.REMINDER)
        attempted += batch["total_count"]
    return attempted


def send_guest_login_link(email: str, login_url: str, ttl_seconds: int) -> None:
    html = render(
        "guest_login.html",
        login_url=login_url,
        expires_minutes=max(1, ttl_seconds // 60),
        organizer_name=None,
    )
    try:
        get_email_sender().send(
            OutgoingEmail(to_email=email, to_name=None, subject="Your Specyf sign-in link", html=html)
        )
    except EmailDeliveryError as exc:
        # the response must not reveal whether the address is known
        logger.warning("guest_login_email_failed", error=str(exc))
