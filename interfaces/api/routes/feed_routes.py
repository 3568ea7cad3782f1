from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from lagom import Container

from application.dtos.post_dtos import FeedRequest, PostPageResponse
from application.use_cases.post_use_cases import GetFeedUseCase
from interfaces.api.middleware import handle_use_case_errors
from interfaces.dependencies import get_container

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def get_feed(
    container: Annotated[Container, Depends(get_container)],
    cursor: Annotated[str | None, Query()] = None,
    limit: Annotated[int | None, Query()] = None,
) -> PostPageResponse:
    """List posts from every user, newest first.

    Follow ``nextCursor`` until it is null to walk the whole feed as it stood
    when the first page was requested.
    """
    use_case = container[GetFeedUseCase]
    return await use_case.execute(FeedRequest(cursor=cursor, limit=limit))
