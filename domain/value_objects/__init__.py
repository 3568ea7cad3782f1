from .caller_identity import CallerIdentity
from .feed_cursor import FeedCursor
from .mime_type import guess_media_type, is_image_media_type

__all__ = [
    "CallerIdentity",
    "FeedCursor",
    "guess_media_type",
    "is_image_media_type",
]
