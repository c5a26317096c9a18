from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlalchemy import ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from specyf.models.base import Base, UTCDateTime, UUIDPrimaryKeyMixin, utcnow


class EmailKind(str, Enum):
    INVITATION = "INVITATION"
    REMINDER = "REMINDER"
    ANNOUNCEMENT = "ANNOUNCEMENT"


class EmailLog(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "email_logs"

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    kind: Mapped[EmailKind] = mapped_column(sa.Enum(EmailKind, name="email_kind"), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(300), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    recipient_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    success_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sent_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
