from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from flock.api.serializers import post_to_response
from flock.core.db import Database, get_db
from flock.schemas.schemas import PostAuthor, PostCreate, PostCreateResponse, PostResponse
from flock.services.post_service import create_post, get_user_posts

router = APIRouter(tags=["posts"])


@router.post("/posts", status_code=status.HTTP_201_CREATED)
async def create_new_post(
    post_data: PostCreate,
    db: Annotated[Database, Depends(get_db)],
) -> PostCreateResponse:
    """
    Create a new post for a user.

    Parameters:
    - **post_data**: userId of the author and the post content

    Returns:
    - **PostCreateResponse**: The created post and the author's id, name and post count

    Raises:
    - **400 Bad Request**: If content is empty or longer than 100 characters
    - **404 Not Found**: If the user does not exist
    """
    post, user = await create_post(db, post_data.user_id, post_data.content)
    return PostCreateResponse(
        message="Post created successfully",
        post=post_to_response(post),
        user=PostAuthor(id=user.id, name=user.name, posts_count=user.posts_count),
    )


@router.get("/user/{user_id}/posts", status_code=status.HTTP_200_OK)
async def get_posts_by_user(user_id: UUID, db: Annotated[Database, Depends(get_db)]) -> list[PostResponse]:
    """
    Get posts created by a specific user, oldest first, with the author attached.

    Raises:
    - **404 Not Found**: If user does not exist
    """
    return [post_to_response(post, owner) for post, owner in await get_user_posts(db, user_id)]
