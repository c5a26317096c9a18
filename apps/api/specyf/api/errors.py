import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from specyf.services.exceptions import (
    ConflictError,
    NotFoundError,
    PaymentError,
    PermissionDeniedError,
    ServiceError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def status_for(err: ServiceError) -> int:
    if isinstance(err, NotFoundError):
        return 404
    if isinstance(err, PermissionDeniedError):
        return 403
    if isinstance(err, ConflictError):
        return 409
    if isinstance(err, ValidationError):
        return 422
    if isinstance(err, PaymentError):
        return 502 if err.upstream else 402
    return 500


def http_error_from_service(err: ServiceError) -> HTTPException:
    return HTTPException(
        status_code=status_for(err),
        detail={"code": err.code, "message": err.message},
    )


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    http_exc = http_error_from_service(exc)
    if http_exc.status_code >= 500:
        logger.error("service_error", code=exc.code, message=exc.message, path=request.url.path)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)
