from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from specyf.api.v1.schemas.events import SchemaBase
from specyf.models.inquiry import ContactMessageStatus, DemoRequestStatus


class ContactMessageIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    subject: str = Field(min_length=1, max_length=300)
    message: str = Field(min_length=1, max_length=10000)


class ContactMessageOut(SchemaBase):
    id: UUID
    name: str
    email: str
    subject: str
    message: str
    status: ContactMessageStatus
    created_at: datetime
    updated_at: datetime


class ContactMessageStatusIn(BaseModel):
    status: ContactMessageStatus


class DemoRequestIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    company: str | None = Field(default=None, max_length=200)
    event_type: str = Field(min_length=1, max_length=50)
    message: str | None = Field(default=None, max_length=10000)


class DemoRequestOut(SchemaBase):
    id: UUID
    name: str
    email: str
    company: str | None = None
    event_type: str | None = None
    message: str | None = None
    status: DemoRequestStatus
    created_at: datetime
    updated_at: datetime


class DemoRequestStatusIn(BaseModel):
    status: DemoRequestStatus


class SubmittedOut(SchemaBase):
    success: bool = True
    message: str
