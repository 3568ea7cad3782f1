from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Post(BaseModel):
    """A user-created record pairing an image locator with ownership and creation time.

    Posts are created once by the ingestion flow and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    image_locator: str
    created_at: datetime
    updated_at: datetime

    @property
    def sort_key(self) -> tuple[datetime, str]:
        """Key of the feed's total order; feeds list posts by this key, descending."""
        return (self.created_at, self.id)
