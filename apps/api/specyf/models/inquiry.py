from __future__ import annotations

from enum import Enum

import sqlalchemy as sa
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from specyf.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ContactMessageStatus(str, Enum):
    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    SPAM = "SPAM"


class DemoRequestStatus(str, Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    DECLINED = "DECLINED"


class ContactMessage(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "contact_messages"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    subject: Mapped[str] = mapped_column(String(300), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ContactMessageStatus] = mapped_column(
        sa.Enum(ContactMessageStatus, name="contact_message_status"),
        nullable=False,
        default=ContactMessageStatus.NEW,
        index=True,
    )


class DemoRequest(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "demo_requests"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    company: Mapped[str | None] = mapped_column(String(200), nullable=True)
    event_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[DemoRequestStatus] = mapped_column(
        sa.Enum(DemoRequestStatus, name="demo_request_status"),
        nullable=False,
        default=DemoRequestStatus.NEW,
        index=True,
    )
