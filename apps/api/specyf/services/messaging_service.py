from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from specyf.models import Guest, Message, User
from specyf.models.message import SenderType
from specyf.realtime import publish_event_update
from specyf.services.access import get_managed_event
from specyf.services.error_codes import ErrorCode
from specyf.services.exceptions import ValidationError
from specyf.services.guests_service import get_guest_or_404

logger = structlog.get_logger(__name__)


def _clean(content: str) -> str:
    content = content.strip()
    if not content:
        raise ValidationError(ErrorCode.MESSAGE_EMPTY.value, "message must not be empty")
    return content


def _message_payload(message: Message) -> dict[str, Any]:
    return {
        "message_id": str(message.id),
        "guest_id": str(message.guest_id),
        "sender_type": message.sender_type.value,
    }


def conversation(db: Session, guest: Guest) -> list[Message]:
    return list(
        db.scalars(
            select(Message)
            .where(Message.event_id == guest.event_id, Message.guest_id == guest.id)
            .order_by(Message.created_at, Message.id)
        ).all()
    )


def _post(db: Session, guest: Guest, sender_type: SenderType, content: str) -> Message:
    message = Message(
        event_id=guest.event_id,
        guest_id=guest.id,
        sender_type=sender_type,
        content=_clean(content),
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    publish_event_update(guest.event_id, "message_created", _message_payload(message))
    return message


def list_conversation(db: Session, user: User, event_id: Any, guest_id: Any) -> list[Message]:
    event = get_managed_event(db, user, event_id)
    return conversation(db, get_guest_or_404(db, event, guest_id))


def send_as_organizer(db: Session, user: User, event_id: Any, guest_id: Any, content: str) -> Message:
    event = get_managed_event(db, user, event_id)
    guest = get_guest_or_404(db, event, guest_id)
    return _post(db, guest, SenderType.ORGANIZER, content)


def send_as_guest(db: Session, guest: Guest, content: str) -> Message:
    return _post(db, guest, SenderType.GUEST, content)


def broadcast(db: Session, user: User, event_id: Any, content: str) -> int:
    event = get_managed_event(db, user, event_id)
    content = _clean(content)
    guests = list(db.scalars(select(Guest).where(Guest.event_id == event.id)).all())
    messages = [
        Message(event_id=event.id, guest_id=guest.id, sender_type=SenderType.ORGANIZER, content=content)
        for guest in guests
    ]
    db.add_all(messages)
    db.commit()

    for message in messages:
        publish_event_update(event.id, "message_created", _message_payload(message))
    logger.info("message_broadcast", event_id=str(event.id), recipients=len(messages))
    return len(messages)
