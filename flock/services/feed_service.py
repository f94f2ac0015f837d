from typing import Optional
from uuid import UUID

from flock.core.db import Database
from flock.models.models import Post, User
from flock.services.user_service import get_user_or_raise


async def get_feed(db: Database, user_id: UUID) -> list[tuple[Post, Optional[User]]]:
    """
    Get the chronological feed for a user

    The feed holds every post authored by a user in the viewer's following
    list, newest first. Posts with equal timestamps are ordered by id so the
    result is stable. There is no pagination.
    """
    user = await get_user_or_raise(db, user_id)
    if not user.following_list:
        return []

    posts = await db.find_posts_by_owners(user.following_list)
    posts.sort(key=lambda post: (post.created_at, post.id), reverse=True)

    owners = {owner.id: owner for owner in await db.get_users({post.user_id for post in posts})}
    return [(post, owners.get(post.user_id)) for post in posts]
