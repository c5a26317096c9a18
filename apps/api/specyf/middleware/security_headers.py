from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from specyf.core.config import settings

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}

# Responses on these prefixes carry tokens or guest data
NO_STORE_PREFIXES = ("/v1/auth", "/v1/guest-auth", "/v1/guest", "/v1/rsvp")

# Uploaded files are served as inert images
MEDIA_PREFIX = "/v1/media/"
MEDIA_CSP = "default-src 'none'; img-src 'self'; sandbox"

HSTS = "max-age=63072000; includeSubDomains; preload"


def headers_for(path: str) -> dict[str, str]:
    headers = dict(BASE_HEADERS)
    if path.startswith(NO_STORE_PREFIXES):
        headers["Cache-Control"] = "no-store"
    if path.startswith(MEDIA_PREFIX):
        headers["Content-Security-Policy"] = MEDIA_CSP
    if settings.env != "local":
        headers["Strict-Transport-Security"] = HSTS
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        if not settings.security_headers_enabled:
            return response

        for name, value in headers_for(request.url.path).items():
            response.headers.setdefault(name, value)
        return response
