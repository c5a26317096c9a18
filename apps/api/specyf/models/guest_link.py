from __future__ import annotations

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from specyf.models.base import Base, UTCDateTime, utcnow


class GuestLinkRedemption(Base):
    """One row per redeemed guest sign-in link, keyed by the link's jti."""

    __tablename__ = "guest_link_redemptions"

    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    redeemed_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
