from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, model_validator

from specyf.api.v1.schemas.events import SchemaBase, TZAwareMixin


class SubEventCreate(TZAwareMixin, SchemaBase):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    location: str | None = Field(default=None, max_length=300)
    starts_at: datetime
    ends_at: datetime

    @model_validator(mode="after")
    def _validate_time_bounds(self):
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class SubEventUpdate(TZAwareMixin, SchemaBase):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    location: str | None = Field(default=None, max_length=300)
    starts_at: datetime | None = None
    ends_at: datetime | None = None


class SubEventOut(SchemaBase):
    id: UUID
    event_id: UUID
    title: str
    description: str | None = None
    location: str | None = None
    starts_at: datetime
    ends_at: datetime
