"""Domain layer exports."""

from domain.entities.post import Post
from domain.exceptions import DomainError, ValidationError
from domain.value_objects import CallerIdentity, FeedCursor

__all__ = [
    "CallerIdentity",
    "DomainError",
    "FeedCursor",
    "Post",
    "ValidationError",
]
