from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from jwt import PyJWTError

from specyf.core.config import settings

ACCESS = "access"
GUEST_LOGIN = "guest_login"
GUEST_ACCESS = "guest"

GUEST_ROLE = "guest"


class InvalidTokenError(ValueError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _encode(sub: str, typ: str, ttl_seconds: int, **claims) -> str:
    now = _now()
    payload = {
        "sub": sub,
        "typ": typ,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        **claims,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, expected_typ: str) -> dict:
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"require": ["sub", "exp", "iat"]},
        )
    except PyJWTError as exc:
        raise InvalidTokenError("invalid token") from exc
    if claims.get("typ") != expected_typ:
        raise InvalidTokenError("wrong token type")
    return claims


def create_access_token(user_id: uuid.UUID, role: str, ttl_seconds: int | None = None) -> str:
    return _encode(str(user_id), ACCESS, ttl_seconds or settings.access_token_ttl_seconds, role=role)


def verify_access_token(token: str) -> dict:
    return decode_token(token, ACCESS)


def create_guest_login_token(email: str) -> str:
    # jti lets a link be redeemed only once
    return _encode(
        email.strip().lower(), GUEST_LOGIN, settings.guest_link_ttl_seconds, jti=uuid.uuid4().hex
    )


def create_guest_access_token(email: str) -> str:
    return _encode(
        email.strip().lower(), GUEST_ACCESS, settings.guest_session_ttl_seconds, role=GUEST_ROLE
    )
