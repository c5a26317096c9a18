from __future__ import annotations

import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO


@dataclass(frozen=True)
class StoredObject:
    key: str
    size: int
    content_type: str


def guess_content_type(key: str) -> str:
    return mimetypes.guess_type(key)[0] or "application/octet-stream"


class StorageAdapter(ABC):
    """Blob store for uploaded media.

    Rows keep a URI (``<scheme>://<key>``) rather than a path, so the backend
    can change without rewriting them.
    """

    scheme: str = ""

    @abstractmethod
    def save(self, key: str, fileobj: BinaryIO) -> StoredObject:
        ...

    @abstractmethod
    def open(self, key: str) -> BinaryIO:
        ...

    @abstractmethod
    def stat(self, key: str) -> StoredObject | None:
        """None when nothing is stored under key. Raises ValueError for malformed keys."""

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    def uri_for(self, key: str) -> str:
        return f"{self.scheme}://{key}"

    def key_for_uri(self, uri: str) -> str | None:
        prefix = f"{self.scheme}://"
        if not uri.startswith(prefix):
            return None
        return uri[len(prefix):]
