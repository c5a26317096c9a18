from __future__ import annotations

import re
import time

import structlog
from fastapi import Request
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from specyf.core.config import settings
from specyf.redis_client import get_redis

logger = structlog.get_logger(__name__)

# Unauthenticated endpoints that write rows or send mail
PUBLIC_WRITE_PATHS = (
    re.compile(r"^/v1/contact$"),
    re.compile(r"^/v1/demo-requests$"),
    re.compile(r"^/v1/guest-auth/request-link$"),
    re.compile(r"^/v1/rsvp/[^/]+/[^/]+$"),
    re.compile(r"^/v1/auth/(login|register)$"),
)


def _parse_rate(rate: str) -> tuple[int, int]:
    """
    Parse formats like:
      - "60/minute"
      - "120/hour"
      - "10/second"
    Returns: (limit, window_seconds)
    """
    raw = rate.strip().lower()
    if "/" not in raw:
        raise ValueError(f"Invalid rate format: {rate}")

    limit_str, window_str = raw.split("/", 1)
    limit = int(limit_str)

    window_str = window_str.strip()
    if window_str in {"sec", "second", "seconds"}:
        return limit, 1
    if window_str in {"min", "minute", "minutes"}:
        return limit, 60
    if window_str in {"hour", "hours"}:
        return limit, 3600
    if window_str in {"day", "days"}:
        return limit, 86400

    raise ValueError(f"Invalid rate window: {window_str}")


def is_public_write(method: str, path: str) -> bool:
    return method == "POST" and any(p.match(path) for p in PUBLIC_WRITE_PATHS)


def _scope_for(method: str, path: str) -> tuple[str, str]:
    """Rate string and key scope for a request."""
    if is_public_write(method, path):
        return settings.rate_limit_public_write, f"pw:{path}"
    return settings.rate_limit_default, f"{method}:{path}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if not settings.rate_limit_enabled:
            return await call_next(request)

        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        if path in set(settings.rate_limit_exempt_paths) or path.endswith("/stream"):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        rate, scope = _scope_for(request.method, path)

        try:
            limit, window_seconds = _parse_rate(rate)
        except ValueError:
            logger.warning("rate_limit_misconfigured", rate=rate)
            return await call_next(request)

        now = int(time.time())
        bucket = now // window_seconds
        key = f"rl:{client_ip}:{scope}:{window_seconds}:{bucket}"

        try:
            r = get_redis()
            count = r.incr(key)
            if count == 1:
                r.expire(key, window_seconds)
        except RedisError as exc:
            # Fail open if Redis is unavailable
            logger.warning("rate_limit_unavailable", error=str(exc))
            return await call_next(request)

        remaining = max(0, limit - int(count))
        reset = (bucket + 1) * window_seconds

        if count > limit:
            logger.info("rate_limited", client_ip=client_ip, path=path, limit=limit)
            headers = {
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(reset),
                "Retry-After": str(max(0, reset - now)),
            }
            return JSONResponse(
                status_code=429,
                content={"detail": {"code": "RATE_LIMITED", "message": "rate limit exceeded"}},
                headers=headers,
            )

        response = await call_next(request)
        response.headers.setdefault("X-RateLimit-Limit", str(limit))
        response.headers.setdefault("X-RateLimit-Remaining", str(remaining))
        response.headers.setdefault("X-RateLimit-Reset", str(reset))
        return response
