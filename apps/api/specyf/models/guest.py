from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from specyf.models.base import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin


class GuestStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


class Guest(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "guests"
    __table_args__ = (
        UniqueConstraint("event_id", "email", name="uq_guests_event_email"),
        sa.Index("ix_guests_email", "email"),
    )

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    # Always stored lower-cased
    email: Mapped[str] = mapped_column(String(320), nullable=False)

    status: Mapped[GuestStatus] = mapped_column(
        sa.Enum(GuestStatus, name="guest_status"),
        nullable=False,
        default=GuestStatus.PENDING,
    )
    response_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Secret embedded in the RSVP link sent by email
    response_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
