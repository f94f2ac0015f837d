from __future__ import annotations

import logging

from flock.core.auth import create_access_token, get_password_hash, verify_password
from flock.core.db import Database, DuplicateKeyError
from flock.models.models import User
from flock.services.errors import DuplicateAccountError, InvalidCredentialsError, NotFoundError

logger = logging.getLogger(__name__)


async def register_user(db: Database, name: str, email: str, password: str) -> User:
    """Create a user with empty follow/post lists and a bcrypt password hash."""
    if await db.get_user_by_email(email) is not None:
        raise DuplicateAccountError("Email already registered")

    user = User(
        name=name,
        email=email,
        password_hash=get_password_hash(password),
    )
    try:
        await db.insert_user(user)
    except DuplicateKeyError as exc:
        raise DuplicateAccountError("Email already registered") from exc

    logger.info(f"Registered user {user.id}")
    return user


async def authenticate_user(db: Database, email: str, password: str) -> tuple[str, User]:
    """Check credentials and issue a one-hour bearer token."""
    user = await db.get_user_by_email(email)
    if user is None:
        raise NotFoundError("User not found")
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError("Invalid credentials")

    return create_access_token(user.id), user
