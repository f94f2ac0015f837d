from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from flock.api.serializers import (
    user_to_detail,
    user_to_follower_summary,
    user_to_public,
    user_to_status_entry,
    user_to_summary,
)
from flock.core.db import Database, get_db
from flock.schemas.schemas import (
    FollowerSummary,
    FollowRequest,
    FollowResponse,
    UserDetail,
    UserStatusEntry,
    UserSummary,
)
from flock.services.user_service import (
    get_user_detail,
    get_user_followers,
    get_user_follows,
    get_user_status,
    list_users,
    toggle_follow,
)

router = APIRouter(tags=["users"])


@router.post(
    "/follow/{user_id}",
    status_code=status.HTTP_200_OK,
    response_model=FollowResponse,
    response_model_exclude_none=True,
)
async def follow(
    user_id: UUID,
    body: FollowRequest,
    db: Annotated[Database, Depends(get_db)],
) -> FollowResponse:
    """
    Follow a user, or unfollow them if already following.

    Parameters:
    - **user_id**: UUID of the user to follow or unfollow
    - **body.userId**: UUID of the user performing the action

    Returns:
    - **FollowResponse**: The updated followed user after a follow; only a message after an unfollow

    Raises:
    - **404 Not Found**: If either user does not exist
    - **400 Bad Request**: If a user tries to follow themselves
    """
    followed, target = await toggle_follow(db, target_id=user_id, acting_id=body.user_id)
    if followed:
        return FollowResponse(message="User followed successfully", followed_user=user_to_public(target))
    return FollowResponse(message="User unfollowed successfully")


@router.get("/users", status_code=status.HTTP_200_OK)
async def get_users(db: Annotated[Database, Depends(get_db)]) -> list[UserSummary]:
    """List every user as a short summary."""
    return [user_to_summary(user) for user in await list_users(db)]


@router.get("/userStatus", status_code=status.HTTP_200_OK)
async def user_status(
    db: Annotated[Database, Depends(get_db)],
    q: UUID = Query(..., description="UUID of the calling user"),
) -> list[UserStatusEntry]:
    """
    List all other users, each flagged with whether the caller follows them.
    """
    entries = await get_user_status(db, q)
    return [user_to_status_entry(user, is_following) for user, is_following in entries]


@router.get("/userFollows", status_code=status.HTTP_200_OK)
async def user_follows(
    db: Annotated[Database, Depends(get_db)],
    q: UUID = Query(..., description="UUID of the calling user"),
) -> list[UserStatusEntry]:
    """
    List the users the caller follows.

    Raises:
    - **404 Not Found**: If the caller does not exist
    """
    entries = await get_user_follows(db, q)
    return [user_to_status_entry(user, is_following) for user, is_following in entries]


@router.get("/user/{user_id}", status_code=status.HTTP_200_OK)
async def get_user(user_id: UUID, db: Annotated[Database, Depends(get_db)]) -> UserDetail:
    """
    Get a user with followers, following and posts expanded.

    Raises:
    - **404 Not Found**: If user does not exist
    """
    user, followers, following, posts = await get_user_detail(db, user_id)
    return user_to_detail(user, followers, following, posts)


@router.get("/user/{user_id}/followers", status_code=status.HTTP_200_OK)
async def get_followers(user_id: UUID, db: Annotated[Database, Depends(get_db)]) -> list[FollowerSummary]:
    """
    Get the users who follow the specified user.

    Raises:
    - **404 Not Found**: If user does not exist
    """
    return [user_to_follower_summary(follower) for follower in await get_user_followers(db, user_id)]
