from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import BinaryIO

from specyf.storage.base import StorageAdapter, StoredObject, guess_content_type

CHUNK_SIZE = 1024 * 1024


class LocalStorageAdapter(StorageAdapter):
    scheme = "local"

    def __init__(self, root: Path) -> None:
        self._root = root.resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    def _normalize_key(self, key: str) -> str:
        normalized = key.strip().lstrip("/")
        path_key = PurePosixPath(normalized)
        if not normalized or path_key.is_absolute() or ".." in path_key.parts:
            raise ValueError(f"invalid storage key: {key!r}")
        return str(path_key)

    def _path_for_key(self, key: str) -> Path:
        normalized = self._normalize_key(key)
        path = self._root.joinpath(*PurePosixPath(normalized).parts).resolve()
        if not path.is_relative_to(self._root):
            raise ValueError(f"invalid storage key: {key!r}")
        return path

    def save(self, key: str, fileobj: BinaryIO) -> StoredObject:
        path = self._path_for_key(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        size = 0
        with path.open("wb") as out:
            while True:
                chunk = fileobj.read(CHUNK_SIZE)
                if not chunk:
                    break
                out.write(chunk)
                size += len(chunk)
        normalized = self._normalize_key(key)
        return StoredObject(key=normalized, size=size, content_type=guess_content_type(normalized))

    def open(self, key: str) -> BinaryIO:
        return self._path_for_key(key).open("rb")

    def stat(self, key: str) -> StoredObject | None:
        path = self._path_for_key(key)
        if not path.is_file():
            return None
        normalized = self._normalize_key(key)
        return StoredObject(
            key=normalized,
            size=path.stat().st_size,
            content_type=guess_content_type(normalized),
        )

    def delete(self, key: str) -> None:
        self._path_for_key(key).unlink(missing_ok=True)
