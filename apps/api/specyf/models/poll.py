from __future__ import annotations

import uuid

from sqlalchemy import JSON, Boolean, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from specyf.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Poll(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "polls"

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question: Mapped[str] = mapped_column(String(500), nullable=False)
    options: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class PollResponse(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "poll_responses"
    __table_args__ = (UniqueConstraint("poll_id", "guest_id", name="uq_poll_responses_poll_guest"),)

    poll_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("polls.id", ondelete="CASCADE"), nullable=False
    )
    guest_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("guests.id", ondelete="CASCADE"), nullable=False
    )
    selected_option: Mapped[str] = mapped_column(String(200), nullable=False)
