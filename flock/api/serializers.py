from __future__ import annotations

from flock.models.models import Post, User
from flock.schemas.schemas import (
    FollowerDetail,
    FollowerSummary,
    FollowingDetail,
    OwnerSummary,
    PostResponse,
    UserDetail,
    UserPublic,
    UserStatusEntry,
    UserSummary,
)


def user_to_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        name=user.name,
        following_count=user.following_count,
        followers_list=user.followers_list,
    )


def user_to_status_entry(user: User, is_following: bool) -> UserStatusEntry:
    return UserStatusEntry(
        id=user.id,
        name=user.name,
        following_count=user.following_count,
        followers_count=user.followers_count,
        followers_list=user.followers_list,
        following_list=user.following_list,
        is_following=is_following,
    )


def user_to_public(user: User) -> UserPublic:
    """Full user document minus the password hash."""
    return UserPublic(
        id=user.id,
        name=user.name,
        email=user.email,
        followers_count=user.followers_count,
        following_count=user.following_count,
        posts_count=user.posts_count,
        followers_list=user.followers_list,
        following_list=user.following_list,
        posts_list=user.posts_list,
    )


def user_to_follower_summary(user: User) -> FollowerSummary:
    return FollowerSummary(id=user.id, name=user.name, email=user.email)


def post_to_response(post: Post, owner: User | None = None) -> PostResponse:
    """Serialize a post; the owner is embedded as {_id, name} when given, else left as its id."""
    return PostResponse(
        id=post.id,
        user=OwnerSummary(id=owner.id, name=owner.name) if owner is not None else post.user_id,
        content=post.content,
        created_at=post.created_at,
    )


def user_to_detail(user: User, followers: list[User], following: list[User], posts: list[Post]) -> UserDetail:
    return UserDetail(
        id=user.id,
        name=user.name,
        email=user.email,
        followers_count=user.followers_count,
        following_count=user.following_count,
        posts_count=user.posts_count,
        followers_list=[
            FollowerDetail(
                id=follower.id,
                name=follower.name,
                email=follower.email,
                following_count=follower.following_count,
                following_list=follower.following_list,
            )
            for follower in followers
        ],
        following_list=[
            FollowingDetail(
                id=followee.id,
                name=followee.name,
                email=followee.email,
                following_count=followee.following_count,
            )
            for followee in following
        ],
        posts_list=[post_to_response(post) for post in posts],
    )
