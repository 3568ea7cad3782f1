from __future__ import annotations

from lagom import Container
from motor.motor_asyncio import AsyncIOMotorClient

from application.ports.blob_store import BlobStore
from application.ports.repositories.post_repository import PostRepository
from application.ports.session_gate import SessionGate
from application.use_cases.auth_use_cases import (
    GetCurrentUserUseCase,
    LoginUseCase,
    LogoutUseCase,
    RegisterUserUseCase,
)
from application.use_cases.post_use_cases import (
    CreatePostUseCase,
    GetFeedUseCase,
    GetPostImageUseCase,
    GetUserPostsUseCase,
)
from infrastructure.blob_stores.fsspec_blob_store import FsspecBlobStore
from infrastructure.config import Settings, settings
from infrastructure.identity.in_memory_session_gate import InMemorySessionGate
from infrastructure.identity.mongo_session_gate import MongoSessionGate
from infrastructure.repositories.in_memory_post_repository import InMemoryPostRepository
from infrastructure.repositories.mongo_post_repository import MongoPostRepository


def create_container(config: Settings = settings) -> Container:
    container = Container()

    # Blob storage (fsspec)
    container[BlobStore] = FsspecBlobStore(
        base_url=config.blob_base_url,
        storage_options=config.blob_storage_options or None,
        owner_quota_bytes=config.owner_quota_bytes,
    )

    # Post records and sessions. Both hold per-instance state, so they are
    # registered as singletons.
    if config.storage_backend == "memory":
        container[PostRepository] = InMemoryPostRepository()
        container[SessionGate] = InMemorySessionGate(
            session_ttl_seconds=config.session_ttl_seconds,
        )
    else:
        mongo_client = AsyncIOMotorClient(config.mongo_uri, tz_aware=True)
        container[AsyncIOMotorClient] = mongo_client
        container[PostRepository] = MongoPostRepository(client=mongo_client, settings=config)
        container[SessionGate] = MongoSessionGate(client=mongo_client, settings=config)

    # Post Use Cases
    container[CreatePostUseCase] = lambda c: CreatePostUseCase(
        post_repository=c[PostRepository],
        blob_store=c[BlobStore],
        max_upload_bytes=config.max_upload_bytes,
        blob_put_timeout=config.blob_put_timeout_seconds,
        metadata_write_timeout=config.metadata_write_timeout_seconds,
    )
    container[GetFeedUseCase] = lambda c: GetFeedUseCase(
        post_repository=c[PostRepository],
        default_limit=config.feed_default_limit,
        max_limit=config.feed_max_limit,
    )
    container[GetUserPostsUseCase] = lambda c: GetUserPostsUseCase(
        post_repository=c[PostRepository],
        default_limit=config.feed_default_limit,
        max_limit=config.feed_max_limit,
    )
    container[GetPostImageUseCase] = lambda c: GetPostImageUseCase(
        post_repository=c[PostRepository],
        blob_store=c[BlobStore],
    )

    # Auth Use Cases
    container[RegisterUserUseCase] = lambda c: RegisterUserUseCase(session_gate=c[SessionGate])
    container[LoginUseCase] = lambda c: LoginUseCase(session_gate=c[SessionGate])
    container[LogoutUseCase] = lambda c: LogoutUseCase(session_gate=c[SessionGate])
    container[GetCurrentUserUseCase] = lambda c: GetCurrentUserUseCase(
        session_gate=c[SessionGate],
    )

    return container
