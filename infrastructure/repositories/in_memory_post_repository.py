from __future__ import annotations

from datetime import datetime

from application.ports.repositories.post_repository import (
    DEFAULT_PAGE_SIZE,
    PostPage,
    PostRepository,
    clamp_page_size,
)
from domain.entities.post import Post
from domain.exceptions import WriteConflictError
from domain.services.post_ordering import MonotonicTimestamps
from domain.value_objects.feed_cursor import FeedCursor
from infrastructure.repositories.post_ids import new_post_id


class InMemoryPostRepository(PostRepository):
    """Process-local post store, used with ``STORAGE_BACKEND=memory`` and in tests.

    Inserts and reads never await, so each runs to completion on the event loop
    and readers always see whole records.
    """

    def __init__(self) -> None:
        self._posts: dict[str, Post] = {}
        self._timestamps = MonotonicTimestamps()

    async def insert(self, owner_id: str, image_locator: str, now: datetime) -> Post:
        post_id = new_post_id()
        if post_id in self._posts:
            msg = f"Post {post_id} already exists"
            raise WriteConflictError(msg)

        created_at = self._timestamps.next(now)
        post = Post(
            id=post_id,
            owner_id=owner_id,
            image_locator=image_locator,
            created_at=created_at,
            updated_at=created_at,
        )
        self._posts[post_id] = post
        return post

    async def list_by_owner(
        self,
        owner_id: str,
        cursor: FeedCursor | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> PostPage:
        owned = (post for post in self._posts.values() if post.owner_id == owner_id)
        return self._page(owned, cursor, limit)

    async def list_all(
        self,
        cursor: FeedCursor | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> PostPage:
        return self._page(self._posts.values(), cursor, limit)

    async def get_by_id(self, post_id: str) -> Post | None:
        return self._posts.get(post_id)

    @staticmethod
    def _page(posts, cursor: FeedCursor | None, limit: int) -> PostPage:  # noqa: ANN001
        limit = clamp_page_size(limit)
        candidates = [post for post in posts if cursor is None or cursor.admits(post)]
        candidates.sort(key=lambda post: post.sort_key, reverse=True)

        items = candidates[:limit]
        next_cursor = FeedCursor.after(items[-1]) if len(candidates) > limit else None
        return PostPage(items=items, next_cursor=next_cursor)
