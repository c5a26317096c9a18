from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from specyf.api.v1.schemas.events import SchemaBase


class PollCreate(BaseModel):
    question: str = Field(min_length=1, max_length=500)
    options: list[str] = Field(min_length=2, max_length=20)


class PollUpdate(BaseModel):
    is_active: bool


class PollOptionTally(SchemaBase):
    option: str
    votes: int


class PollOut(SchemaBase):
    id: UUID
    event_id: UUID
    question: str
    options: list[str]
    is_active: bool
    created_at: datetime
    tallies: list[PollOptionTally] = Field(default_factory=list)
    total_votes: int = 0
    my_choice: str | None = None


class PollAnswerIn(BaseModel):
    option: str = Field(min_length=1, max_length=200)
