from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from specyf.core.config import settings
from specyf.storage.base import StorageAdapter
from specyf.storage.local import LocalStorageAdapter


def create_storage(
    backend: str | None = None,
    root: str | Path | None = None,
) -> StorageAdapter:
    selected_backend = (backend or settings.storage_backend).strip().lower()
    if selected_backend == "local":
        return LocalStorageAdapter(Path(root or settings.storage_root))
    raise ValueError(f"unsupported storage backend: {selected_backend}")


@lru_cache(maxsize=1)
def get_storage() -> StorageAdapter:
    return create_storage()


def media_url(uri: str | None) -> str | None:
    """Public URL served by the media route for a stored object."""
    if not uri:
        return None
    key = get_storage().key_for_uri(uri)
    if key is None:
        return uri
    return f"/v1/media/{key}"
