import mimetypes

IMAGE_MEDIA_TYPE_PREFIX = "image/"
FALLBACK_MEDIA_TYPE = "application/octet-stream"


def is_image_media_type(content_type: str | None) -> bool:
    """Return True if the declared content type is an ``image/*`` media type."""
    if not content_type:
        return False
    return content_type.strip().lower().startswith(IMAGE_MEDIA_TYPE_PREFIX)


def guess_media_type(name: str) -> str:
    """Guess a media type from a file name or locator suffix."""
    media_type, _ = mimetypes.guess_type(name)
    return media_type or FALLBACK_MEDIA_TYPE
