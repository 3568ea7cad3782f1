"""Tests for the fsspec-backed blob store."""

from __future__ import annotations

import hashlib

import pytest

from domain.exceptions import QuotaExceededError, ValidationError
from infrastructure.blob_stores.fsspec_blob_store import FsspecBlobStore


class TestFsspecBlobStore:
    def test_put_returns_locator_under_base_url(self, blob_store, blob_base_url, jpeg_bytes) -> None:
        stored = blob_store.put("user-1", "holiday.jpg", jpeg_bytes, "image/jpeg")

        assert stored.locator.startswith(f"{blob_base_url}/posts/user-1/")
        assert stored.locator.endswith("_holiday.jpg")
        assert stored.size_bytes == len(jpeg_bytes)
        assert stored.sha256 == hashlib.sha256(jpeg_bytes).hexdigest()
        assert blob_store.exists(stored.locator)
        assert blob_store.get_bytes(stored.locator) == jpeg_bytes

    def test_same_filename_gets_distinct_keys(self, blob_store) -> None:
        first = blob_store.put("user-1", "photo.jpg", b"first", "image/jpeg")
        second = blob_store.put("user-1", "photo.jpg", b"second", "image/jpeg")

        assert first.locator != second.locator
        assert blob_store.get_bytes(first.locator) == b"first"
        assert blob_store.get_bytes(second.locator) == b"second"

    @pytest.mark.parametrize(
        ("filename", "suffix"),
        [
            ("../../etc/passwd", "_passwd"),
            ("my photo (1).png", "_my_photo_1_.png"),
            (None, "_upload"),
            ("...", "_upload"),
        ],
    )
    def test_filenames_are_sanitised(self, blob_store, filename, suffix) -> None:
        stored = blob_store.put("user-1", filename, b"data", "image/png")

        assert stored.key.startswith("posts/user-1/")
        assert stored.key.endswith(suffix)
        assert ".." not in stored.key

    def test_owner_id_cannot_escape_its_prefix(self, blob_store) -> None:
        stored = blob_store.put("../other", "a.png", b"data", "image/png")

        assert stored.key.startswith("posts/other/")

    def test_quota_is_enforced_per_owner(self, blob_base_url) -> None:
        store = FsspecBlobStore(base_url=blob_base_url, owner_quota_bytes=10)
        store.put("user-1", "a.png", b"12345678", "image/png")

        with pytest.raises(QuotaExceededError):
            store.put("user-1", "b.png", b"123", "image/png")

        # Another owner has its own budget
        store.put("user-2", "c.png", b"123", "image/png")

    def test_missing_blob_raises_file_not_found(self, blob_store, blob_base_url) -> None:
        with pytest.raises(FileNotFoundError):
            blob_store.get_bytes(f"{blob_base_url}/posts/user-1/nothing.png")

    def test_foreign_locator_is_rejected(self, blob_store) -> None:
        with pytest.raises(ValidationError):
            blob_store.exists("s3://somewhere-else/posts/user-1/a.png")
