from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from specyf.api.errors import register_exception_handlers
from specyf.api.v1.router import router as v1_router
from specyf.core.config import settings
from specyf.core.logging import configure_logging
from specyf.db import create_all
from specyf.middleware.rate_limit import RateLimitMiddleware
from specyf.middleware.request_id import RequestIdMiddleware
from specyf.middleware.security_headers import SecurityHeadersMiddleware

configure_logging()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.db_auto_create:
        create_all()
    logger.info("api_started", env=settings.env, realtime=settings.realtime_backend, email=settings.email_backend)
    yield


app = FastAPI(title="Specyf API", lifespan=lifespan)

# Starlette runs the LAST added middleware FIRST (outermost).
# RequestId and SecurityHeaders wrap CORS preflight and rate-limit responses;
# RateLimit sits closest to the app.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

register_exception_handlers(app)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
def root():
    return {"name": "Specyf API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(v1_router, prefix="/v1")
