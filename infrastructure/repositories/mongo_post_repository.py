from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from application.ports.repositories.post_repository import (
    DEFAULT_PAGE_SIZE,
    PostPage,
    PostRepository,
    clamp_page_size,
)
from domain.entities.post import Post
from domain.exceptions import InfrastructureError, WriteConflictError
from domain.services.post_ordering import MonotonicTimestamps
from domain.value_objects.feed_cursor import FeedCursor
from infrastructure.repositories.post_ids import new_post_id

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorClient

    from infrastructure.config import Settings

logger = structlog.get_logger()

FEED_SORT = [("created_at", DESCENDING), ("_id", DESCENDING)]


class MongoPostRepository(PostRepository):
    """Post records in a MongoDB collection.

    Documents are stored as ``{_id, owner_id, image_locator, created_at, updated_at}``.
    Pages are read with a keyset query on ``(created_at, _id)`` so concurrent
    inserts never shift later pages.
    """

    def __init__(self, client: AsyncIOMotorClient, settings: Settings) -> None:
        self.client = client
        self.db = self.client[settings.mongo_db]
        self.posts = self.db[settings.mongo_posts_collection]
        self._timestamps = MonotonicTimestamps()

    async def ensure_indexes(self) -> None:
        await self.posts.create_index(FEED_SORT, name="feed_order")
        await self.posts.create_index(
            [("owner_id", ASCENDING), *FEED_SORT],
            name="owner_feed_order",
        )
        logger.info("post_indexes_ensured", collection=self.posts.name)

    async def insert(self, owner_id: str, image_locator: str, now: datetime) -> Post:
        created_at = self._timestamps.next(now)
        post = Post(
            id=new_post_id(),
            owner_id=owner_id,
            image_locator=image_locator,
            created_at=created_at,
            updated_at=created_at,
        )
        try:
            await self.posts.insert_one(self._to_document(post))
        except DuplicateKeyError as e:
            raise WriteConflictError(str(e)) from e
        except PyMongoError as e:
            raise InfrastructureError(str(e)) from e
        return post

    async def list_by_owner(
        self,
        owner_id: str,
        cursor: FeedCursor | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> PostPage:
        return await self._page({"owner_id": owner_id}, cursor, limit)

    async def list_all(
        self,
        cursor: FeedCursor | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> PostPage:
        return await self._page({}, cursor, limit)

    async def get_by_id(self, post_id: str) -> Post | None:
        try:
            doc = await self.posts.find_one({"_id": post_id})
        except PyMongoError as e:
            raise InfrastructureError(str(e)) from e
        if not doc:
            return None
        return self._from_document(doc)

    async def _page(
        self,
        query: dict[str, Any],
        cursor: FeedCursor | None,
        limit: int,
    ) -> PostPage:
        limit = clamp_page_size(limit)
        if cursor is not None:
            query = {**query, **self._after_cursor(cursor)}

        try:
            docs = (
                await self.posts.find(query)
                .sort(FEED_SORT)
                .limit(limit + 1)
                .to_list(length=limit + 1)
            )
        except PyMongoError as e:
            raise InfrastructureError(str(e)) from e

        items = [self._from_document(doc) for doc in docs[:limit]]
        next_cursor = FeedCursor.after(items[-1]) if len(docs) > limit else None
        return PostPage(items=items, next_cursor=next_cursor)

    @staticmethod
    def _after_cursor(cursor: FeedCursor) -> dict[str, Any]:
        """Match posts strictly less than the cursor in ``(created_at desc, _id desc)`` order."""
        return {
            "$or": [
                {"created_at": {"$lt": cursor.created_at}},
                {"created_at": cursor.created_at, "_id": {"$lt": cursor.post_id}},
            ],
        }

    @staticmethod
    def _to_document(post: Post) -> dict[str, Any]:
        return {
            "_id": post.id,
            "owner_id": post.owner_id,
            "image_locator": post.image_locator,
            "created_at": post.created_at,
            "updated_at": post.updated_at,
        }

    @staticmethod
    def _from_document(doc: dict[str, Any]) -> Post:
        return Post(
            id=str(doc["_id"]),
            owner_id=doc["owner_id"],
            image_locator=doc["image_locator"],
            created_at=_as_utc(doc["created_at"]),
            updated_at=_as_utc(doc["updated_at"]),
        )


def _as_utc(value: datetime) -> datetime:
    # Clients created without tz_aware=True hand back naive UTC datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
