from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from specyf.api.v1.schemas.events import SchemaBase
from specyf.models.email_log import EmailKind


class SendEmailsIn(BaseModel):
    # Empty means every eligible guest of the event
    guest_ids: list[UUID] = Field(default_factory=list)
    queue: bool = False


class AnnouncementIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    send_email: bool = True

    @field_validator("title", "content")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class EmailResultOut(SchemaBase):
    email: str
    success: bool
    error: str | None = None


class EmailBatchOut(SchemaBase):
    kind: EmailKind
    queued: bool = False
    task_id: str | None = None
    results: list[EmailResultOut] = Field(default_factory=list)
    success_count: int = 0
    total_count: int = 0


class AnnouncementOut(SchemaBase):
    id: UUID
    event_id: UUID
    title: str
    content: str
    created_at: datetime


class AnnouncementSentOut(SchemaBase):
    announcement: AnnouncementOut
    delivery: EmailBatchOut | None = None


class EmailLogOut(SchemaBase):
    id: UUID
    event_id: UUID
    kind: EmailKind
    subject: str | None = None
    recipient_count: int
    success_count: int
    sent_at: datetime
