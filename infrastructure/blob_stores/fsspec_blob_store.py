from __future__ import annotations

import hashlib
import re
import secrets
import time
from pathlib import PurePosixPath

import fsspec
import structlog

from application.ports.blob_store import BlobStore, StoredBlob
from domain.exceptions import QuotaExceededError, StorageUnavailableError, ValidationError

logger = structlog.get_logger()

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_NAME_LENGTH = 100
_KEY_ATTEMPTS = 3


def _safe_segment(value: str | None, fallback: str) -> str:
    name = PurePosixPath((value or "").replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name[:_MAX_NAME_LENGTH] or fallback


class FsspecBlobStore(BlobStore):
    """Blob store over any fsspec filesystem (``file://``, ``memory://``, ``s3://``...).

    Keys look like ``posts/{owner}/{time_ns}_{token}_{filename}``; the locator
    handed back to callers is the full URL of the key under ``base_url``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        storage_options: dict | None = None,
        owner_quota_bytes: int | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.storage_options = storage_options or {}
        self.owner_quota_bytes = owner_quota_bytes

    def _url(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def _fs_path(self, key: str) -> tuple[fsspec.AbstractFileSystem, str]:
        return fsspec.core.url_to_fs(self._url(key), **self.storage_options)

    def _key_for(self, locator: str) -> str:
        prefix = f"{self.base_url}/"
        if not locator.startswith(prefix) or len(locator) == len(prefix):
            msg = f"Locator is not managed by this store: {locator}"
            raise ValidationError(msg)
        return locator[len(prefix) :]

    @staticmethod
    def _owner_prefix(owner_id: str) -> str:
        return f"posts/{_safe_segment(owner_id, 'anonymous')}"

    def _new_key(self, owner_id: str, filename: str | None) -> str:
        token = secrets.token_hex(4)
        return f"{self._owner_prefix(owner_id)}/{time.time_ns()}_{token}_{_safe_segment(filename, 'upload')}"

    def _check_quota(self, owner_id: str, incoming: int) -> None:
        if self.owner_quota_bytes is None:
            return
        fs, path = self._fs_path(self._owner_prefix(owner_id))
        used = fs.du(path) if fs.exists(path) else 0
        if used + incoming > self.owner_quota_bytes:
            msg = f"owner {owner_id} would use {used + incoming} of {self.owner_quota_bytes} bytes"
            raise QuotaExceededError(msg)

    def put(
        self,
        owner_id: str,
        filename: str | None,
        data: bytes,
        content_type: str | None,
    ) -> StoredBlob:
        try:
            self._check_quota(owner_id, len(data))

            for _ in range(_KEY_ATTEMPTS):
                key = self._new_key(owner_id, filename)
                fs, path = self._fs_path(key)
                if not fs.exists(path):
                    break
                logger.warning("blob_key_collision", key=key)
            else:
                msg = "could not derive an unused storage key"
                raise StorageUnavailableError(msg)

            fs.makedirs(path.rsplit("/", 1)[0], exist_ok=True)
            with fs.open(path, "wb") as out:
                out.write(data)

            # Read-after-write: the object must be visible with its full size
            if not fs.exists(path) or fs.size(path) != len(data):
                msg = f"blob {key} not readable after write"
                raise StorageUnavailableError(msg)
        except OSError as e:
            raise StorageUnavailableError(str(e) or type(e).__name__) from e

        return StoredBlob(
            locator=self._url(key),
            key=key,
            size_bytes=len(data),
            sha256=hashlib.sha256(data).hexdigest(),
            content_type=content_type,
        )

    def exists(self, locator: str) -> bool:
        fs, path = self._fs_path(self._key_for(locator))
        return fs.exists(path)

    def get_bytes(self, locator: str) -> bytes:
        """Read a blob back.

        Raises:
            FileNotFoundError: If nothing is stored at the locator.
            StorageUnavailableError: On any other backend failure.

        """
        fs, path = self._fs_path(self._key_for(locator))
        try:
            with fs.open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise
        except OSError as e:
            raise StorageUnavailableError(str(e) or type(e).__name__) from e
