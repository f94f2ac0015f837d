import logging
from uuid import UUID

from flock.core.db import Database
from flock.models.models import Post, User
from flock.services.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


async def get_user_or_raise(db: Database, user_id: UUID) -> User:
    user = await db.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def toggle_follow(db: Database, target_id: UUID, acting_id: UUID) -> tuple[bool, User]:
    """
    Follow the target user, or unfollow if the acting user already follows them.

    Both sides of the edge are written in one transaction, and each write
    touches only the follower or following list it changes, with the
    matching count recomputed from the list length. Two concurrent toggles
    on the same pair may both decide the same direction; the second one
    is then a no-op.

    Returns:
        (True, target) after a follow, (False, target) after an unfollow.
    """
    if target_id == acting_id:
        raise InvalidInputError("Cannot follow yourself")

    target = await db.get_user(target_id)
    acting = await db.get_user(acting_id)
    if target is None or acting is None:
        raise NotFoundError("User not found")

    followed = acting.id not in target.followers_list
    if followed:
        updated = await db.add_follow(target.id, acting.id)
        logger.info(f"User {acting.id} followed {target.id}")
    else:
        updated = await db.remove_follow(target.id, acting.id)
        logger.info(f"User {acting.id} unfollowed {target.id}")

    if updated is None:
        raise NotFoundError("User not found")
    return followed, updated


async def list_users(db: Database) -> list[User]:
    return await db.list_users()


async def get_user_status(db: Database, caller_id: UUID) -> list[tuple[User, bool]]:
    """All users except the caller, each paired with whether the caller follows them"""
    users = await db.list_users()
    return [(user, caller_id in user.followers_list) for user in users if user.id != caller_id]


async def get_user_follows(db: Database, caller_id: UUID) -> list[tuple[User, bool]]:
    """Like get_user_status, restricted to users the caller follows"""
    caller = await get_user_or_raise(db, caller_id)
    following = set(caller.following_list)
    users = await db.list_users()
    return [
        (user, caller_id in user.followers_list)
        for user in users
        if user.id != caller_id and user.id in following
    ]


async def get_user_detail(db: Database, user_id: UUID) -> tuple[User, list[User], list[User], list[Post]]:
    """Load a user together with the documents its reference lists point to"""
    user = await get_user_or_raise(db, user_id)
    followers = _in_order(await db.get_users(user.followers_list), user.followers_list)
    following = _in_order(await db.get_users(user.following_list), user.following_list)
    posts = _in_order(await db.get_posts(user.posts_list), user.posts_list)
    return user, followers, following, posts


async def get_user_followers(db: Database, user_id: UUID) -> list[User]:
    user = await get_user_or_raise(db, user_id)
    return _in_order(await db.get_users(user.followers_list), user.followers_list)


def _in_order(items, ids):
    """Arrange loaded documents in reference-list order, dropping dangling ids"""
    by_id = {item.id: item for item in items}
    return [by_id[item_id] for item_id in ids if item_id in by_id]
