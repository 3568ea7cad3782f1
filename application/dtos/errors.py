class AppError:
    """Represents different categories of application errors."""

    def __init__(self, category: str, message: str) -> None:
        # 'validation', 'unauthenticated', 'invalid_media', 'payload_too_large',
        # 'not_found', 'conflict', 'write_conflict', 'storage_unavailable',
        # 'quota_exceeded', 'metadata_write_failed'
        self.category = category
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.category in {"storage_unavailable", "metadata_write_failed"}

    def __str__(self) -> str:
        return self.message
