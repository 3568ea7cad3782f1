from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreatePostRequest(BaseModel):
    """Metadata accompanying an uploaded image."""

    filename: str | None = Field(None, description="Original filename of the upload")
    content_type: str | None = Field(None, description="Declared media type of the upload")


class PostResponse(CamelModel):
    """Wire representation of a post."""

    id: str = Field(..., description="Unique identifier of the post")
    owner_id: str = Field(..., description="Identity of the uploading user")
    image_locator: str = Field(..., description="Locator of the stored image")
    created_at: datetime = Field(..., description="Server-assigned creation time")
    updated_at: datetime = Field(..., description="Server-assigned update time")


class FeedRequest(BaseModel):
    cursor: str | None = Field(None, description="Opaque cursor returned by the previous page")
    limit: int | None = Field(None, description="Requested page size")


class PostPageResponse(CamelModel):
    """One page of posts plus the cursor for the next page, if any."""

    items: list[PostResponse] = Field(default_factory=list)
    next_cursor: str | None = Field(None, description="Cursor for the next page, null on the last page")


class PostImage(BaseModel):
    content: bytes
    media_type: str
