import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from typing import BinaryIO

import structlog
from returns.result import Failure, Result, Success

from application.dtos.errors import AppError
from application.dtos.post_dtos import (
    CreatePostRequest,
    FeedRequest,
    PostImage,
    PostPageResponse,
    PostResponse,
)
from application.mappers.post_mappers import PostMapper
from application.ports.blob_store import BlobStore, StoredBlob
from application.ports.repositories.post_repository import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PostRepository,
)
from domain.entities.post import Post
from domain.exceptions import (
    InfrastructureError,
    QuotaExceededError,
    StorageUnavailableError,
    ValidationError,
    WriteConflictError,
)
from domain.value_objects.caller_identity import CallerIdentity
from domain.value_objects.feed_cursor import FeedCursor
from domain.value_objects.mime_type import guess_media_type, is_image_media_type

logger = structlog.get_logger()

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class CreatePostUseCase:
    """Turn an uploaded image into a durably stored post.

    The blob is written first and the post record second. There is no
    transaction spanning the two: a post only becomes visible once its record
    exists, and the record is only written after the blob is durable. A failed
    record write leaves an unreferenced blob behind, which no reader can reach.
    """

    def __init__(  # noqa: PLR0913
        self,
        post_repository: PostRepository,
        blob_store: BlobStore,
        *,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        blob_put_timeout: float = 30.0,
        metadata_write_timeout: float = 10.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.post_repository = post_repository
        self.blob_store = blob_store
        self.max_upload_bytes = max_upload_bytes
        self.blob_put_timeout = blob_put_timeout
        self.metadata_write_timeout = metadata_write_timeout
        self.clock = clock

    async def execute(
        self,
        caller: CallerIdentity | None,
        stream: BinaryIO,
        request: CreatePostRequest,
    ) -> Result[PostResponse, AppError]:
        """Validate the upload, store the image, then record the post.

        Args:
            caller: Authenticated identity of the uploader, None if there is none
            stream: Binary stream of the image
            request: Filename and declared content type of the upload

        Returns:
            Result containing the created post or an error

        """
        if caller is None:
            return Failure(AppError("unauthenticated", "You must be logged in to create a post"))

        if not is_image_media_type(request.content_type):
            return Failure(
                AppError(
                    "invalid_media",
                    f"Expected an image upload, got {request.content_type or 'no content type'}",
                ),
            )

        data = stream.read(self.max_upload_bytes + 1)
        if len(data) > self.max_upload_bytes:
            return Failure(
                AppError(
                    "payload_too_large",
                    f"Image exceeds the {self.max_upload_bytes} byte limit",
                ),
            )

        blob_result = await self._store_blob(caller, data, request)
        if isinstance(blob_result, Failure):
            return blob_result
        stored: StoredBlob = blob_result.unwrap()

        post_result = await self._insert_post(caller, stored)
        if isinstance(post_result, Failure):
            return post_result
        post: Post = post_result.unwrap()

        logger.info(
            "post_created",
            post_id=post.id,
            owner_id=post.owner_id,
            size_bytes=stored.size_bytes,
        )
        return Success(PostMapper.to_post_response(post))

    async def _store_blob(
        self,
        caller: CallerIdentity,
        data: bytes,
        request: CreatePostRequest,
    ) -> Result[StoredBlob, AppError]:
        try:
            stored = await asyncio.wait_for(
                asyncio.to_thread(
                    self.blob_store.put,
                    caller.user_id,
                    request.filename,
                    data,
                    request.content_type,
                ),
                timeout=self.blob_put_timeout,
            )
        except QuotaExceededError as e:
            return Failure(AppError("quota_exceeded", f"Storage quota exceeded: {e!s}"))
        except StorageUnavailableError as e:
            logger.warning("blob_put_failed", owner_id=caller.user_id, error=str(e))
            return Failure(AppError("storage_unavailable", f"Image storage unavailable: {e!s}"))
        except TimeoutError:
            logger.warning(
                "blob_put_timed_out",
                owner_id=caller.user_id,
                timeout=self.blob_put_timeout,
            )
            return Failure(AppError("storage_unavailable", "Image storage timed out"))
        except Exception as e:
            logger.exception("blob_put_unexpected_error", owner_id=caller.user_id)
            return Failure(AppError("storage_unavailable", f"Failed to store image: {e!s}"))

        logger.info("blob_stored", owner_id=caller.user_id, locator=stored.locator)
        return Success(stored)

    async def _insert_post(
        self,
        caller: CallerIdentity,
        stored: StoredBlob,
    ) -> Result[Post, AppError]:
        try:
            post = await asyncio.wait_for(
                self.post_repository.insert(caller.user_id, stored.locator, self.clock()),
                timeout=self.metadata_write_timeout,
            )
        except WriteConflictError as e:
            logger.exception("post_write_conflict", owner_id=caller.user_id, locator=stored.locator)
            return Failure(AppError("write_conflict", f"Post record conflict: {e!s}"))
        except (InfrastructureError, TimeoutError) as e:
            logger.warning(
                "post_insert_failed_orphaned_blob",
                owner_id=caller.user_id,
                locator=stored.locator,
                error=str(e) or type(e).__name__,
            )
            return Failure(AppError("metadata_write_failed", "Failed to record the post"))
        except Exception:
            logger.exception(
                "post_insert_unexpected_error_orphaned_blob",
                owner_id=caller.user_id,
                locator=stored.locator,
            )
            return Failure(AppError("metadata_write_failed", "Failed to record the post"))

        return Success(post)


class _FeedQuery:
    def __init__(
        self,
        post_repository: PostRepository,
        *,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: int = MAX_PAGE_SIZE,
    ) -> None:
        self.post_repository = post_repository
        self.max_limit = max(1, min(max_limit, MAX_PAGE_SIZE))
        self.default_limit = max(1, min(default_limit, self.max_limit))

    def _limit(self, requested: int | None) -> int:
        if requested is None:
            return self.default_limit
        return max(1, min(requested, self.max_limit))


class GetFeedUseCase(_FeedQuery):
    """Page through every post, newest first."""

    async def execute(self, request: FeedRequest) -> Result[PostPageResponse, AppError]:
        try:
            cursor = FeedCursor.decode(request.cursor) if request.cursor else None
            page = await self.post_repository.list_all(
                cursor=cursor,
                limit=self._limit(request.limit),
            )
            return Success(PostMapper.to_page_response(page))
        except ValidationError as e:
            return Failure(AppError("validation", f"Validation error: {e!s}"))
        except InfrastructureError as e:
            logger.warning("feed_query_failed", error=str(e))
            return Failure(AppError("storage_unavailable", f"Failed to load the feed: {e!s}"))


class GetUserPostsUseCase(_FeedQuery):
    """Page through the caller's own posts, newest first."""

    async def execute(
        self,
        caller: CallerIdentity | None,
        request: FeedRequest,
    ) -> Result[PostPageResponse, AppError]:
        if caller is None:
            return Failure(AppError("unauthenticated", "You must be logged in to view your posts"))

        try:
            cursor = FeedCursor.decode(request.cursor) if request.cursor else None
            page = await self.post_repository.list_by_owner(
                caller.user_id,
                cursor=cursor,
                limit=self._limit(request.limit),
            )
            return Success(PostMapper.to_page_response(page))
        except ValidationError as e:
            return Failure(AppError("validation", f"Validation error: {e!s}"))
        except InfrastructureError as e:
            logger.warning("user_posts_query_failed", owner_id=caller.user_id, error=str(e))
            return Failure(AppError("storage_unavailable", f"Failed to load posts: {e!s}"))


class GetPostImageUseCase:
    """Fetch the image bytes behind a post."""

    def __init__(self, post_repository: PostRepository, blob_store: BlobStore) -> None:
        self.post_repository = post_repository
        self.blob_store = blob_store

    async def execute(self, post_id: str) -> Result[PostImage, AppError]:
        try:
            post = await self.post_repository.get_by_id(post_id)
        except InfrastructureError as e:
            logger.warning("post_lookup_failed", post_id=post_id, error=str(e))
            return Failure(AppError("storage_unavailable", f"Failed to load post: {e!s}"))
        if post is None:
            return Failure(AppError("not_found", f"Post {post_id} not found"))

        try:
            content = await asyncio.to_thread(self.blob_store.get_bytes, post.image_locator)
        except FileNotFoundError:
            logger.error("post_image_missing", post_id=post_id, locator=post.image_locator)  # noqa: TRY400
            return Failure(AppError("not_found", f"Image for post {post_id} not found"))
        except ValidationError:
            # Locator written under a different blob base URL
            logger.error(  # noqa: TRY400
                "post_image_locator_unresolvable",
                post_id=post_id,
                locator=post.image_locator,
            )
            return Failure(AppError("not_found", f"Image for post {post_id} not found"))
        except StorageUnavailableError as e:
            logger.warning("post_image_read_failed", post_id=post_id, error=str(e))
            return Failure(AppError("storage_unavailable", f"Failed to load image: {e!s}"))
        except Exception:
            logger.exception("post_image_unexpected_error", post_id=post_id)
            return Failure(AppError("storage_unavailable", "Failed to load image"))

        return Success(
            PostImage(content=content, media_type=guess_media_type(post.image_locator)),
        )
