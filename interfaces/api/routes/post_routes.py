from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from lagom import Container

from application.dtos.post_dtos import (
    CreatePostRequest,
    FeedRequest,
    PostPageResponse,
    PostResponse,
)
from application.use_cases.post_use_cases import (
    CreatePostUseCase,
    GetPostImageUseCase,
    GetUserPostsUseCase,
)
from domain.value_objects.caller_identity import CallerIdentity
from interfaces.api.middleware import handle_use_case_errors
from interfaces.dependencies import get_caller_identity, get_container

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", status_code=status.HTTP_201_CREATED)
@handle_use_case_errors
async def create_post(
    container: Annotated[Container, Depends(get_container)],
    caller: Annotated[CallerIdentity | None, Depends(get_caller_identity)],
    file: Annotated[UploadFile, File()],
) -> PostResponse:
    """Upload an image and create a post owned by the caller.

    Returns:
        201 Created: Post created; the image is already retrievable
        401 Unauthorized: No valid session
        413 Payload Too Large: Image exceeds the size cap
        415 Unsupported Media Type: Upload is not an image
        502 Bad Gateway: Image stored but the post record could not be written
        503 Service Unavailable: Image storage failed; safe to retry
        507 Insufficient Storage: Storage quota exhausted

    """
    use_case = container[CreatePostUseCase]
    return await use_case.execute(
        caller=caller,
        stream=file.file,
        request=CreatePostRequest(filename=file.filename, content_type=file.content_type),
    )


@router.get("/mine", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def list_my_posts(
    container: Annotated[Container, Depends(get_container)],
    caller: Annotated[CallerIdentity | None, Depends(get_caller_identity)],
    cursor: Annotated[str | None, Query()] = None,
    limit: Annotated[int | None, Query()] = None,
) -> PostPageResponse:
    """List the caller's own posts, newest first."""
    use_case = container[GetUserPostsUseCase]
    return await use_case.execute(caller=caller, request=FeedRequest(cursor=cursor, limit=limit))


@router.get("/{post_id}/image", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def get_post_image(
    post_id: str,
    container: Annotated[Container, Depends(get_container)],
) -> Response:
    """Stream the image behind a post."""
    use_case = container[GetPostImageUseCase]
    result = await use_case.execute(post_id)
    return result.map(
        lambda image: Response(content=image.content, media_type=image.media_type),
    )
