from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from specyf.storage import get_storage

router = APIRouter(prefix="/media", tags=["media"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "MEDIA_NOT_FOUND", "message": "not found"})


@router.get("/{key:path}")
def get_media(key: str):
    storage = get_storage()
    try:
        stored = storage.stat(key)
    except ValueError:
        raise _not_found() from None
    if stored is None:
        raise _not_found()

    return StreamingResponse(
        storage.open(stored.key),
        media_type=stored.content_type,
        headers={
            "Cache-Control": "public, max-age=86400",
            "Content-Length": str(stored.size),
        },
    )
