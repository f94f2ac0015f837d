import logging
from typing import Optional
from uuid import UUID

from flock.core.db import Database
from flock.models.models import Post, User
from flock.services.errors import InvalidInputError, NotFoundError
from flock.services.user_service import get_user_or_raise

logger = logging.getLogger(__name__)

MAX_POST_LENGTH = 100


def validate_content(content: Optional[str]) -> str:
    if not content or len(content) > MAX_POST_LENGTH:
        raise InvalidInputError("Invalid post data")
    return content


async def create_post(db: Database, user_id: UUID, content: str) -> tuple[Post, User]:
    """Create a post and append it to the owner's post list; returns the post and the updated owner"""
    content = validate_content(content)
    user = await get_user_or_raise(db, user_id)

    post = Post(user_id=user.id, content=content)
    owner = await db.insert_post(post)
    if owner is None:
        raise NotFoundError("User not found")

    logger.info(f"User {owner.id} created post {post.id}")
    return post, owner


async def get_user_posts(db: Database, user_id: UUID) -> list[tuple[Post, User]]:
    """Get a user's posts in the order they were created, each with its owner"""
    user = await get_user_or_raise(db, user_id)
    posts = {post.id: post for post in await db.get_posts(user.posts_list)}
    return [(posts[post_id], user) for post_id in user.posts_list if post_id in posts]
