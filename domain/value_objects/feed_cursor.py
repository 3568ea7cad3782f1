from __future__ import annotations

import base64
import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from domain.exceptions import ValidationError

if TYPE_CHECKING:
    from domain.entities.post import Post


class FeedCursor(BaseModel):
    """Opaque pagination token encoding the sort key of the last post returned.

    The next page holds every post strictly less than ``(created_at, post_id)``
    in the feed order, so posts inserted between page fetches never shift the
    pages that follow.
    """

    model_config = ConfigDict(frozen=True)

    created_at: datetime
    post_id: str

    @classmethod
    def after(cls, post: Post) -> FeedCursor:
        return cls(created_at=post.created_at, post_id=post.id)

    @property
    def sort_key(self) -> tuple[datetime, str]:
        return (self.created_at, self.post_id)

    def admits(self, post: Post) -> bool:
        """Return True if ``post`` belongs on a page that follows this cursor."""
        return post.sort_key < self.sort_key

    def encode(self) -> str:
        payload = json.dumps(
            {"c": self.created_at.isoformat(), "i": self.post_id},
            separators=(",", ":"),
        )
        return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")

    @classmethod
    def decode(cls, token: str) -> FeedCursor:
        padded = token + "=" * (-len(token) % 4)
        try:
            raw = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
            created_at = datetime.fromisoformat(raw["c"])
            post_id = raw["i"]
        except (ValueError, KeyError, TypeError) as e:
            msg = "Malformed pagination cursor"
            raise ValidationError(msg) from e

        if not isinstance(post_id, str) or not post_id:
            msg = "Malformed pagination cursor"
            raise ValidationError(msg)

        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)

        return cls(created_at=created_at, post_id=post_id)
