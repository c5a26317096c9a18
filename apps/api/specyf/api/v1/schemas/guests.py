from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from specyf.api.v1.schemas.events import PublicEventOut, SchemaBase
from specyf.models.guest import GuestStatus


class GuestCreate(SchemaBase):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    status: GuestStatus = GuestStatus.PENDING

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name is required")
        return value


class GuestUpdate(SchemaBase):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailStr | None = None
    status: GuestStatus | None = None
    message: str | None = None


class GuestOut(SchemaBase):
    id: UUID
    event_id: UUID
    name: str
    email: str
    status: GuestStatus
    response_date: datetime | None = None
    message: str | None = None
    created_at: datetime
    updated_at: datetime


class GuestWithLinkOut(GuestOut):
    response_url: str


class GuestListOut(SchemaBase):
    items: list[GuestOut]
    total: int = Field(ge=0)


class BulkAddIn(BaseModel):
    event_ids: list[UUID] = Field(min_length=1)
    # One guest per line: "name, email[, status]"
    input: str = Field(min_length=1)


class BulkAddResult(SchemaBase):
    event_id: UUID
    event_title: str | None = None
    added: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)


class BulkAddOut(SchemaBase):
    results: list[BulkAddResult]


class ParsedGuestOut(SchemaBase):
    name: str
    email: str
    status: GuestStatus


class CsvImportOut(SchemaBase):
    rows: list[ParsedGuestOut]
    total: int
    results: list[BulkAddResult] = Field(default_factory=list)


class RSVPChoice(str, Enum):
    CONFIRMED = "confirmed"
    DECLINED = "declined"


class RSVPIn(BaseModel):
    status: RSVPChoice
    message: str | None = Field(default=None, max_length=2000)


class RSVPOut(SchemaBase):
    guest_id: UUID
    event_id: UUID
    status: GuestStatus
    response_date: datetime | None = None
    message: str | None = None


class InvitationOut(SchemaBase):
    guest: GuestOut
    event: PublicEventOut
