from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from specyf.api.v1.schemas.events import SchemaBase
from specyf.models.message import SenderType


class MessageIn(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class BroadcastOut(SchemaBase):
    sent: int


class MessageOut(SchemaBase):
    id: UUID
    event_id: UUID
    guest_id: UUID
    sender_type: SenderType
    content: str
    created_at: datetime
