from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.inquiries import ContactMessageIn, DemoRequestIn
from specyf.models import ContactMessage, DemoRequest
from specyf.models.inquiry import ContactMessageStatus, DemoRequestStatus
from specyf.services.access import coerce_uuid
from specyf.services.error_codes import ErrorCode
from specyf.services.exceptions import NotFoundError

logger = structlog.get_logger(__name__)


def submit_contact_message(db: Session, payload: ContactMessageIn) -> ContactMessage:
    item = ContactMessage(
        name=payload.name.strip(),
        email=str(payload.email).lower(),
        subject=payload.subject.strip(),
        message=payload.message.strip(),
        status=ContactMessageStatus.NEW,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info("contact_message_received", contact_message_id=str(item.id))
    return item


def submit_demo_request(db: Session, payload: DemoRequestIn) -> DemoRequest:
    item = DemoRequest(
        name=payload.name.strip(),
        email=str(payload.email).lower(),
        company=(payload.company or "").strip() or None,
        event_type=payload.event_type.strip(),
        message=(payload.message or "").strip() or None,
        status=DemoRequestStatus.NEW,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info("demo_request_received", demo_request_id=str(item.id))
    return item


def _search(stmt, model, query: str | None, columns):
    if not query:
        return stmt
    like = f"%{query.strip().lower()}%"
    return stmt.where(or_(*(func.lower(getattr(model, c)).like(like) for c in columns)))


def list_contact_messages(
    db: Session, *, status: ContactMessageStatus | None = None, query: str | None = None
) -> list[ContactMessage]:
    stmt = select(ContactMessage)
    if status is not None:
        stmt = stmt.where(ContactMessage.status == status)
    stmt = _search(stmt, ContactMessage, query, ("name", "email", "subject"))
    return list(db.scalars(stmt.order_by(ContactMessage.created_at.desc())).all())


def list_demo_requests(
    db: Session, *, status: DemoRequestStatus | None = None, query: str | None = None
) -> list[DemoRequest]:
    stmt = select(DemoRequest)
    if status is not None:
        stmt = stmt.where(DemoRequest.status == status)
    stmt = _search(stmt, DemoRequest, query, ("name", "email", "company"))
    return list(db.scalars(stmt.order_by(DemoRequest.created_at.desc())).all())


def _get(db: Session, model, item_id: Any, code: ErrorCode):
    key = coerce_uuid(item_id)
    item = db.get(model, key) if key else None
    if item is None:
        raise NotFoundError(code.value, "not found")
    return item


def get_contact_message(db: Session, item_id: Any) -> ContactMessage:
    return _get(db, ContactMessage, item_id, ErrorCode.CONTACT_MESSAGE_NOT_FOUND)


def get_demo_request(db: Session, item_id: Any) -> DemoRequest:
    return _get(db, DemoRequest, item_id, ErrorCode.DEMO_REQUEST_NOT_FOUND)


def set_contact_message_status(db: Session, item_id: Any, status: ContactMessageStatus) -> ContactMessage:
    item = get_contact_message(db, item_id)
    item.status = status
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def set_demo_request_status(db: Session, item_id: Any, status: DemoRequestStatus) -> DemoRequest:
    item = get_demo_request(db, item_id)
    item.status = status
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def delete_contact_message(db: Session, item_id: Any) -> None:
    db.delete(get_contact_message(db, item_id))
    db.commit()


def delete_demo_request(db: Session, item_id: Any) -> None:
    db.delete(get_demo_request(db, item_id))
    db.commit()
