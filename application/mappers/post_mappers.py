from application.dtos.post_dtos import PostPageResponse, PostResponse
from application.ports.repositories.post_repository import PostPage
from domain.entities.post import Post


class PostMapper:
    @staticmethod
    def to_post_response(post: Post) -> PostResponse:
        return PostResponse(
            id=post.id,
            owner_id=post.owner_id,
            image_locator=post.image_locator,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )

    @staticmethod
    def to_page_response(page: PostPage) -> PostPageResponse:
        return PostPageResponse(
            items=[PostMapper.to_post_response(post) for post in page.items],
            next_cursor=page.next_cursor.encode() if page.next_cursor else None,
        )
