from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class StoredBlob:
    locator: str
    key: str
    size_bytes: int
    sha256: str
    content_type: str | None


class BlobStore(Protocol):
    def put(
        self,
        owner_id: str,
        filename: str | None,
        data: bytes,
        content_type: str | None,
    ) -> StoredBlob:
        """Persist an upload under a key that no later upload can overwrite.

        Once this returns, ``StoredBlob.locator`` is readable by any caller.

        Raises:
            StorageUnavailableError: On a transient backend failure (retryable).
            QuotaExceededError: When the owner's storage budget is exhausted.

        """
        ...

    def exists(self, locator: str) -> bool: ...
    def get_bytes(self, locator: str) -> bytes: ...
