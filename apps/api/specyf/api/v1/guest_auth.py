from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from specyf.auth.jwt import (
    GUEST_LOGIN,
    InvalidTokenError,
    create_guest_access_token,
    create_guest_login_token,
    decode_token,
)
from specyf.core.config import settings
from specyf.db import get_db
from specyf.models import Guest, GuestLinkRedemption
from specyf.models.base import utcnow
from specyf.services import communications_service

router = APIRouter(prefix="/guest-auth", tags=["guest-auth"])

DBSession = Annotated[Session, Depends(get_db)]

logger = structlog.get_logger(__name__)


class RequestLinkIn(BaseModel):
    email: EmailStr


class RequestLinkOut(BaseModel):
    message: str


class VerifyIn(BaseModel):
    token: str = Field(min_length=1)


class GuestTokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    email: str


@router.post("/request-link", response_model=RequestLinkOut, status_code=202)
def request_link(payload: RequestLinkIn, db: DBSession):
    email = str(payload.email).strip().lower()
    has_invitation = db.scalar(select(Guest.id).where(Guest.email == email).limit(1)) is not None
    if has_invitation:
        token = create_guest_login_token(email)
        login_url = f"{settings.public_base_url}/auth/guest-login?token={token}"
        communications_service.send_guest_login_link(email, login_url, settings.guest_link_ttl_seconds)
        logger.info("guest_link_sent")
    # Same response either way so callers cannot tell which addresses are known
    return RequestLinkOut(message="If this email has invitations, a sign-in link is on its way.")


@router.post("/verify", response_model=GuestTokenOut)
def verify(payload: VerifyIn, db: DBSession):
    try:
        claims = decode_token(payload.token, GUEST_LOGIN)
    except InvalidTokenError:
        raise HTTPException(status_code=401, detail="invalid or expired link") from None

    jti = claims.get("jti")
    if not jti:
        raise HTTPException(status_code=401, detail="invalid or expired link")

    email = claims["sub"]
    db.add(
        GuestLinkRedemption(
            jti=jti,
            email=email,
            redeemed_at=utcnow(),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("guest_link_reused")
        raise HTTPException(status_code=401, detail="link already used") from None

    return GuestTokenOut(
        access_token=create_guest_access_token(email),
        expires_in=settings.guest_session_ttl_seconds,
        email=email,
    )
