from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from flock.api.serializers import post_to_response
from flock.core.db import Database, get_db
from flock.schemas.schemas import PostResponse
from flock.services.feed_service import get_feed

router = APIRouter(tags=["feed"])


@router.get("/user/{user_id}/feed", status_code=status.HTTP_200_OK)
async def home_feed(user_id: UUID, db: Annotated[Database, Depends(get_db)]) -> list[PostResponse]:
    """
    Get a user's feed.

    Parameters:
    - **user_id**: UUID of the viewing user

    Returns:
    - **list[PostResponse]**: Posts by every followed user, newest first, each with its author's name

    Raises:
    - **404 Not Found**: If user does not exist

    Notes:
    - Not paginated; the whole feed is returned
    """
    return [post_to_response(post, owner) for post, owner in await get_feed(db, user_id)]
