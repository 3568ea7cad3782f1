"""Repository interface (port) for post records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from domain.entities.post import Post
    from domain.value_objects.feed_cursor import FeedCursor

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def clamp_page_size(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_PAGE_SIZE
    return max(1, min(limit, MAX_PAGE_SIZE))


@dataclass(frozen=True)
class PostPage:
    items: list[Post] = field(default_factory=list)
    next_cursor: FeedCursor | None = None


class PostRepository(ABC):
    """Interface for the post repository.

    Both list operations order posts by ``(created_at desc, id desc)`` and page
    with a keyset cursor: the next page holds the posts strictly less than the
    cursor in that order.

    The repository raises domain exceptions:
    - WriteConflictError: When the store rejects a write with a duplicate key
    - InfrastructureError: When infrastructure operations fail (DB, network, etc.)
    """

    @abstractmethod
    async def insert(self, owner_id: str, image_locator: str, now: datetime) -> Post:
        """Create a post, assigning its id and ``created_at = updated_at = now``.

        ``created_at`` never decreases across inserts on the same instance.

        Raises:
            WriteConflictError: If the store detects an identical-key write.
            InfrastructureError: If the write fails.

        """

    @abstractmethod
    async def list_by_owner(
        self,
        owner_id: str,
        cursor: FeedCursor | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> PostPage:
        pass

    @abstractmethod
    async def list_all(
        self,
        cursor: FeedCursor | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> PostPage:
        pass

    @abstractmethod
    async def get_by_id(self, post_id: str) -> Post | None:
        pass

    async def ensure_indexes(self) -> None:  # noqa: B027
        """Create backing indexes, where the store has any."""
