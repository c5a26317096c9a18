from __future__ import annotations

import tempfile
import uuid
from typing import BinaryIO

import structlog

from specyf.core.config import settings
from specyf.services.error_codes import ErrorCode
from specyf.services.exceptions import ServiceError, ValidationError
from specyf.storage import get_storage

logger = structlog.get_logger(__name__)

IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class StorageWriteError(ServiceError):
    pass


def store_image(prefix: str, fileobj: BinaryIO, content_type: str | None) -> str:
    """Validate an uploaded image and store it under prefix. Returns the storage URI."""
    mime_type = (content_type or "").lower()
    if mime_type not in IMAGE_EXTENSIONS:
        raise ValidationError(ErrorCode.INVALID_MIME_TYPE.value, "only jpeg, png and webp images are allowed")

    max_size = settings.image_max_upload_bytes
    total_size = 0
    buffered = tempfile.SpooledTemporaryFile(max_size=2 * 1024 * 1024, mode="w+b")
    try:
        while True:
            chunk = fileobj.read(1024 * 1024)
            if not chunk:
                break
            total_size += len(chunk)
            if total_size > max_size:
                raise ValidationError(
                    ErrorCode.FILE_TOO_LARGE.value,
                    f"file exceeds max size of {max_size} bytes",
                )
            buffered.write(chunk)

        if total_size == 0:
            raise ValidationError(ErrorCode.EMPTY_FILE.value, "uploaded file is empty")

        buffered.seek(0)
        key = f"{prefix}/{uuid.uuid4().hex}{IMAGE_EXTENSIONS[mime_type]}"
        storage = get_storage()
        try:
            stored = storage.save(key, buffered)
        except OSError as exc:
            logger.error("storage_write_failed", key=key, error=str(exc))
            raise StorageWriteError(ErrorCode.STORAGE_WRITE_FAILED.value, "failed to store uploaded file") from exc
    finally:
        buffered.close()

    logger.info("image_stored", key=stored.key, size=stored.size, content_type=stored.content_type)
    return storage.uri_for(stored.key)


def discard(uri: str | None) -> None:
    if not uri:
        return
    storage = get_storage()
    key = storage.key_for_uri(uri)
    if key is not None:
        storage.delete(key)
