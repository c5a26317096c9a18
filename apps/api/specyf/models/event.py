from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from specyf.models.base import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin


class EventStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class Event(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "events"
    __table_args__ = (
        sa.CheckConstraint(
            "max_guests IS NULL OR max_guests >= 1",
            name="max_guests_positive",
        ),
        sa.Index("ix_events_organizer_starts_at", "organizer_id", "starts_at"),
    )

    organizer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    starts_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    ends_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    location: Mapped[str | None] = mapped_column(String(300), nullable=True)
    max_guests: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[EventStatus] = mapped_column(
        sa.Enum(EventStatus, name="event_status"),
        nullable=False,
        default=EventStatus.PUBLISHED,
        server_default=EventStatus.PUBLISHED.value,
    )

    # Shareable code used in /invite/{code} links
    invitation_code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    cover_image_uri: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
