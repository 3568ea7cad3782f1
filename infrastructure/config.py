from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # make it absolute so reload/CWD doesn't break it
        env_file=Path(__file__).resolve().parents[1] / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="PostFeed", validation_alias="APP_NAME")
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        validation_alias="APP_ENV",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_dir: Path = Field(
        default=Path(__file__).resolve().parents[1] / "logs",
        validation_alias="LOG_DIR",
    )

    # API
    api_host: str = Field(default="127.0.0.1", validation_alias="API_HOST")
    api_port: int = Field(default=8000, validation_alias="API_PORT")

    # Storage backend for post records and sessions
    storage_backend: Literal["mongo", "memory"] = Field(
        default="mongo",
        validation_alias="STORAGE_BACKEND",
        description="'memory' keeps posts and sessions in-process; for local development only.",
    )

    # MongoDB
    mongo_uri: str = Field(
        default="mongodb://localhost:27017",
        validation_alias="MONGO_URI",
    )
    mongo_db: str = Field(default="post_feed", validation_alias="MONGO_DB")
    mongo_posts_collection: str = Field(
        default="posts",
        validation_alias="MONGO_POSTS_COLLECTION",
    )
    mongo_users_collection: str = Field(
        default="users",
        validation_alias="MONGO_USERS_COLLECTION",
    )
    mongo_sessions_collection: str = Field(
        default="sessions",
        validation_alias="MONGO_SESSIONS_COLLECTION",
    )

    # Blob Storage
    blob_base_url: str = Field(
        default="file://" + str(Path(__file__).resolve().parents[1] / "blobs"),
        validation_alias="BLOB_BASE_URL",
    )
    blob_storage_options: dict = {}

    # Ingestion
    max_upload_bytes: int = Field(
        default=5 * 1024 * 1024,
        validation_alias="MAX_UPLOAD_BYTES",
    )
    owner_quota_bytes: int | None = Field(
        default=None,
        validation_alias="OWNER_QUOTA_BYTES",
        description="Per-owner blob storage budget. Unset means unlimited.",
    )
    blob_put_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="BLOB_PUT_TIMEOUT_SECONDS",
    )
    metadata_write_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="METADATA_WRITE_TIMEOUT_SECONDS",
    )

    # Feed
    feed_default_limit: int = Field(default=20, validation_alias="FEED_DEFAULT_LIMIT")
    feed_max_limit: int = Field(
        default=100,
        validation_alias="FEED_MAX_LIMIT",
        description="Upper bound on page size. Values above 100 are capped at 100.",
    )

    # Sessions
    session_ttl_seconds: int = Field(
        default=7 * 24 * 60 * 60,
        validation_alias="SESSION_TTL_SECONDS",
    )


# Global settings instance
settings = Settings()
