from __future__ import annotations

from specyf.storage.base import StorageAdapter, StoredObject
from specyf.storage.factory import create_storage, get_storage, media_url
from specyf.storage.local import LocalStorageAdapter

__all__ = ["StorageAdapter", "StoredObject", "LocalStorageAdapter", "create_storage", "get_storage", "media_url"]
