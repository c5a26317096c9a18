from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.inquiries import (
    ContactMessageOut,
    ContactMessageStatusIn,
    DemoRequestOut,
    DemoRequestStatusIn,
)
from specyf.auth.deps import AdminUser, require_role
from specyf.auth.tokens import revoke_user_tokens
from specyf.db import get_db
from specyf.models import Event, Guest, Subscription, User
from specyf.models.billing import SubscriptionStatus
from specyf.models.event import EventStatus
from specyf.models.inquiry import ContactMessageStatus, DemoRequestStatus
from specyf.models.user import UserRole, UserStatus
from specyf.services import inquiries_service

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)

DBSession = Annotated[Session, Depends(get_db)]

logger = structlog.get_logger(__name__)


class UserOut(BaseModel):
    user_id: str
    email: str
    name: str | None
    role: str
    status: str
    created_at: datetime
    last_login_at: datetime | None


def _user_out(u: User) -> UserOut:
    return UserOut(
        user_id=str(u.id),
        email=u.email,
        name=u.name,
        role=u.role.value,
        status=u.status.value,
        created_at=u.created_at,
        last_login_at=u.last_login_at,
    )


def _target_user(db: Session, user_id: str) -> User:
    try:
        target_id = uuid.UUID(user_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid user id") from None

    user = db.get(User, target_id)
    if not user:
        raise HTTPException(status_code=404, detail={"code": "USER_NOT_FOUND", "message": "user not found"})
    return user


@router.get("/users", response_model=list[UserOut])
def list_users(
    db: DBSession,
    query: str | None = Query(default=None, min_length=1),
    role: UserRole | None = None,
    status: UserStatus | None = None,
    limit: int = Query(default=50, ge=1, le=200),
):
    stmt = select(User).order_by(User.created_at.desc()).limit(limit)
    if query:
        like = f"%{query.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(User.email).like(like),
                func.lower(User.name).like(like),
            )
        )
    if role is not None:
        stmt = stmt.where(User.role == role)
    if status is not None:
        stmt = stmt.where(User.status == status)

    return [_user_out(u) for u in db.scalars(stmt).all()]


class UpdateUserIn(BaseModel):
    role: UserRole | None = None
    status: UserStatus | None = None


@router.patch("/users/{user_id}", response_model=UserOut)
def update_user(user_id: str, payload: UpdateUserIn, db: DBSession, admin: AdminUser):
    if payload.role is None and payload.status is None:
        raise HTTPException(status_code=400, detail="no changes provided")

    user = _target_user(db, user_id)

    if payload.role is not None:
        if user.id == admin.id:
            raise HTTPException(status_code=400, detail="cannot change own role")
        user.role = payload.role

    if payload.status is not None:
        if user.id == admin.id and payload.status != UserStatus.ACTIVE:
            raise HTTPException(status_code=400, detail="cannot suspend yourself")
        user.status = payload.status
        if payload.status == UserStatus.SUSPENDED:
            revoke_user_tokens(db, user.id)

    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(
        "user_updated_by_admin",
        admin_id=str(admin.id),
        user_id=str(user.id),
        role=user.role.value,
        status=user.status.value,
    )
    return _user_out(user)


@router.post("/users/{user_id}/revoke-sessions")
def revoke_sessions(user_id: str, db: DBSession):
    user = _target_user(db, user_id)
    revoked = revoke_user_tokens(db, user.id)
    db.commit()
    return {"revoked": revoked}


class PlatformStatsOut(BaseModel):
    users: int
    suspended_users: int
    events: int
    active_events: int
    guests: int
    active_subscriptions: int
    new_contact_messages: int
    new_demo_requests: int


def _count(db: Session, stmt) -> int:
    return int(db.scalar(select(func.count()).select_from(stmt.subquery())) or 0)


@router.get("/stats", response_model=PlatformStatsOut)
def platform_stats(db: DBSession):
    return PlatformStatsOut(
        users=_count(db, select(User.id)),
        suspended_users=_count(db, select(User.id).where(User.status == UserStatus.SUSPENDED)),
        events=_count(db, select(Event.id)),
        active_events=_count(db, select(Event.id).where(Event.status == EventStatus.PUBLISHED)),
        guests=_count(db, select(Guest.id)),
        active_subscriptions=_count(
            db, select(Subscription.id).where(Subscription.status == SubscriptionStatus.ACTIVE)
        ),
        new_contact_messages=len(
            inquiries_service.list_contact_messages(db, status=ContactMessageStatus.NEW)
        ),
        new_demo_requests=len(inquiries_service.list_demo_requests(db, status=DemoRequestStatus.NEW)),
    )


@router.get("/contact-messages", response_model=list[ContactMessageOut])
def list_contact_messages(
    db: DBSession,
    status: ContactMessageStatus | None = None,
    query: str | None = Query(default=None, min_length=1),
):
    return inquiries_service.list_contact_messages(db, status=status, query=query)


@router.get("/contact-messages/{item_id}", response_model=ContactMessageOut)
def get_contact_message(item_id: str, db: DBSession):
    return inquiries_service.get_contact_message(db, item_id)


@router.patch("/contact-messages/{item_id}", response_model=ContactMessageOut)
def update_contact_message(item_id: str, payload: ContactMessageStatusIn, db: DBSession):
    return inquiries_service.set_contact_message_status(db, item_id, payload.status)


@router.delete("/contact-messages/{item_id}", status_code=204)
def delete_contact_message(item_id: str, db: DBSession):
    inquiries_service.delete_contact_message(db, item_id)
    return Response(status_code=204)


@router.get("/demo-requests", response_model=list[DemoRequestOut])
def list_demo_requests(
    db: DBSession,
    status: DemoRequestStatus | None = None,
    query: str | None = Query(default=None, min_length=1),
):
    return inquiries_service.list_demo_requests(db, status=status, query=query)


@router.get("/demo-requests/{item_id}", response_model=DemoRequestOut)
def get_demo_request(item_id: str, db: DBSession):
    return inquiries_service.get_demo_request(db, item_id)


@router.patch("/demo-requests/{item_id}", response_model=DemoRequestOut)
def update_demo_request(item_id: str, payload: DemoRequestStatusIn, db: DBSession):
    return inquiries_service.set_demo_request_status(db, item_id, payload.status)


@router.delete("/demo-requests/{item_id}", status_code=204)
def delete_demo_request(item_id: str, db: DBSession):
    inquiries_service.delete_demo_request(db, item_id)
    return Response(status_code=204)
