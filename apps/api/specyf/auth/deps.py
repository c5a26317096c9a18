from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from specyf.auth.jwt import GUEST_ACCESS, InvalidTokenError, decode_token, verify_access_token
from specyf.db import get_db
from specyf.models import User
from specyf.models.user import UserRole, UserStatus
from specyf.services.access import coerce_uuid

DBSession = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def bearer_token(request: Request) -> str:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise _unauthorized("missing bearer token")
    return auth.removeprefix("Bearer ").strip()


def get_current_user(request: Request, db: DBSession) -> User:
    try:
        claims = verify_access_token(bearer_token(request))
    except InvalidTokenError:
        raise _unauthorized("invalid access token") from None

    user_id = coerce_uuid(claims.get("sub"))
    user = db.get(User, user_id) if user_id else None
    if not user:
        raise _unauthorized("user not found")
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=403, detail="user is not active")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_role(*roles: UserRole):
    allowed = set(roles)

    def _dep(user: CurrentUser) -> User:
        if user.role != UserRole.ADMIN and user.role not in allowed:
            raise HTTPException(status_code=403, detail="insufficient role")
        return user

    return _dep


AdminUser = Annotated[User, Depends(require_role(UserRole.ADMIN))]
OrganizerUser = Annotated[User, Depends(require_role(UserRole.ORGANIZER))]


@dataclass(frozen=True)
class GuestIdentity:
    email: str


def get_current_guest(request: Request) -> GuestIdentity:
    try:
        claims = decode_token(bearer_token(request), GUEST_ACCESS)
    except InvalidTokenError:
        raise _unauthorized("invalid guest token") from None
    return GuestIdentity(email=claims["sub"])


CurrentGuest = Annotated[GuestIdentity, Depends(get_current_guest)]
