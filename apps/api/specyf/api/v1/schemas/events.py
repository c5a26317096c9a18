from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from specyf.models.event import EventStatus
from specyf.storage import media_url


def _ensure_tzaware(value: datetime | None) -> datetime | None:
    if value is None:
        return value
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError("datetime must be timezone-aware")
    return value


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class TZAwareMixin(BaseModel):
    @field_validator(
        "starts_at",
        "ends_at",
        mode="after",
        check_fields=False,
    )
    @classmethod
    def _validate_tzaware(cls, value: datetime | None) -> datetime | None:
        return _ensure_tzaware(value)


class EventCreate(TZAwareMixin, SchemaBase):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    event_type: str | None = Field(default=None, max_length=50)
    location: str | None = Field(default=None, max_length=300)
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    max_guests: int | None = Field(default=None, ge=1)
    is_public: bool = False
    status: EventStatus | None = None
    invitation_code: str | None = Field(default=None, min_length=4, max_length=64)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title is required")
        return value

    @model_validator(mode="after")
    def _validate_time_bounds(self):
        if self.starts_at and self.ends_at and self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class EventUpdate(TZAwareMixin, SchemaBase):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    event_type: str | None = Field(default=None, max_length=50)
    location: str | None = Field(default=None, max_length=300)
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    max_guests: int | None = Field(default=None, ge=1)
    is_public: bool | None = None
    status: EventStatus | None = None

    @model_validator(mode="after")
    def _validate_time_bounds(self):
        if self.starts_at and self.ends_at and self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class EventOut(SchemaBase):
    id: UUID
    title: str
    description: str | None = None
    event_type: str | None = None
    location: str | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    max_guests: int | None = None
    is_public: bool
    status: EventStatus
    invitation_code: str
    cover_image_uri: str | None = None
    organizer_id: UUID
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None

    @computed_field
    @property
    def cover_image_url(self) -> str | None:
        return media_url(self.cover_image_uri)


class EventListOut(SchemaBase):
    items: list[EventOut]
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total: int = Field(ge=0)


class PublicEventOut(SchemaBase):
    """Event card shown on invitation and guest pages."""

    id: UUID
    title: str
    description: str | None = None
    event_type: str | None = None
    location: str | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    status: EventStatus
    cover_image_uri: str | None = None
    organizer_name: str | None = None

    @computed_field
    @property
    def cover_image_url(self) -> str | None:
        return media_url(self.cover_image_uri)


class EventStatsOut(SchemaBase):
    event_id: UUID
    total: int
    confirmed: int
    declined: int
    pending: int
    response_rate: float
    max_guests: int | None = None
    spots_left: int | None = None


class DashboardSummaryOut(SchemaBase):
    total_events: int
    upcoming_events: int
    total_guests: int
    confirmed: int
    declined: int
    pending: int
