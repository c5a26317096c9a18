from __future__ import annotations

import uuid
from enum import Enum

import sqlalchemy as sa
from sqlalchemy import ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from specyf.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class SenderType(str, Enum):
    ORGANIZER = "ORGANIZER"
    GUEST = "GUEST"


class Message(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "messages"
    __table_args__ = (
        sa.Index("ix_messages_event_guest_created_at", "event_id", "guest_id", "created_at"),
    )

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    # Conversation partner; every thread is organizer <-> one guest
    guest_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("guests.id", ondelete="CASCADE"), nullable=False
    )
    sender_type: Mapped[SenderType] = mapped_column(
        sa.Enum(SenderType, name="message_sender_type"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
