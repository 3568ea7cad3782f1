"""Shared test fixtures and configuration."""

from __future__ import annotations

from uuid import uuid4

import pytest

from domain.value_objects.caller_identity import CallerIdentity
from infrastructure.blob_stores.fsspec_blob_store import FsspecBlobStore
from infrastructure.repositories.in_memory_post_repository import InMemoryPostRepository


@pytest.fixture
def caller() -> CallerIdentity:
    """Return an authenticated uploader."""
    return CallerIdentity(user_id="user-1", email="u1@example.com")


@pytest.fixture
def other_caller() -> CallerIdentity:
    return CallerIdentity(user_id="user-2", email="u2@example.com")


@pytest.fixture
def blob_base_url() -> str:
    # fsspec's memory filesystem is process-global; isolate each test under its own root
    return f"memory://test-blobs-{uuid4().hex}"


@pytest.fixture
def blob_store(blob_base_url: str) -> FsspecBlobStore:
    return FsspecBlobStore(base_url=blob_base_url)


@pytest.fixture
def post_repository() -> InMemoryPostRepository:
    return InMemoryPostRepository()


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A 2 MiB payload with a JPEG header."""
    header = b"\xff\xd8\xff\xe0"
    return header + b"\x00" * (2 * 1024 * 1024 - len(header))
