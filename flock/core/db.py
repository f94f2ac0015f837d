import asyncio
import logging
from collections.abc import Iterable
from typing import Optional
from uuid import UUID

import asyncpg
from asyncpg import Connection, Pool, Record
from fastapi import Request

from flock.config_secrets import DATABASE_URL, DB_POOL_MAX_SIZE, DB_POOL_MIN_SIZE
from flock.models.models import Post, User

logger = logging.getLogger(__name__)

USER_COLUMNS = """
    id, name, email, password_hash,
    followers_count, following_count, posts_count,
    followers_list, following_list, posts_list, created_at
"""

POST_COLUMNS = "id, user_id, content, created_at"

# Reference list column -> counter column kept equal to its length
REFERENCE_COUNTS = {
    "followers_list": "followers_count",
    "following_list": "following_count",
    "posts_list": "posts_count",
}


class DuplicateKeyError(Exception):
    """Raised when an insert violates a unique constraint."""


class Database:
    """
    Storage client for users and posts.

    One instance is created per application and shared by every request
    through the connection pool. Users are stored document-style: the
    follower, following and post references live in UUID[] columns of the
    user row itself.

    Writes never send back a whole user row. Each one appends to or removes
    from the single reference list it owns and recomputes the matching
    counter in the same statement, so concurrent follows and posts on the
    same user cannot overwrite each other's lists.
    """

    def __init__(
        self,
        dsn: str = DATABASE_URL,
        min_size: int = DB_POOL_MIN_SIZE,
        max_size: int = DB_POOL_MAX_SIZE,
    ):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.pool: Optional[Pool] = None
        self._connect_lock = asyncio.Lock()

    async def connect(self, create_tables: bool = True) -> None:
        """Create the connection pool and make sure the schema exists"""
        self.pool = await asyncpg.create_pool(
            self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
        )
        logger.info(f"Database pool created (min={self.min_size}, max={self.max_size})")

        if create_tables:
            await self.create_tables()

    async def disconnect(self) -> None:
        """Close the connection pool"""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Database pool closed")

    async def _get_pool(self) -> Pool:
        """Get the pool, connecting first if the app was served without a lifespan"""
        if self.pool is None:
            async with self._connect_lock:
                if self.pool is None:
                    logger.info("Database pool not initialized, connecting")
                    await self.connect()
        assert self.pool is not None
        return self.pool

    async def create_tables(self) -> None:
        """Create database tables if they don't exist"""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id UUID PRIMARY KEY,
                    name TEXT NOT NULL,
                    email TEXT UNIQUE NOT NULL,
                    password_hash TEXT NOT NULL,
                    followers_count INTEGER NOT NULL DEFAULT 0,
                    following_count INTEGER NOT NULL DEFAULT 0,
                    posts_count INTEGER NOT NULL DEFAULT 0,
                    followers_list UUID[] NOT NULL DEFAULT '{}',
                    following_list UUID[] NOT NULL DEFAULT '{}',
                    posts_list UUID[] NOT NULL DEFAULT '{}',
                    created_at TIMESTAMPTZ NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_users_created_at ON users(created_at);
            """)

            await conn.execute("""
                CREATE TABLE IF NOT EXISTS posts (
                    id UUID PRIMARY KEY,
                    user_id UUID NOT NULL REFERENCES users(id),
                    content VARCHAR(100) NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL,
                    CONSTRAINT post_content_check CHECK (char_length(content) BETWEEN 1 AND 100)
                );
                CREATE INDEX IF NOT EXISTS idx_posts_user_id ON posts(user_id);
                CREATE INDEX IF NOT EXISTS idx_posts_created_at ON posts(created_at DESC);
            """)

    # Users

    async def get_user(self, user_id: UUID) -> Optional[User]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(f"SELECT {USER_COLUMNS} FROM users WHERE id = $1", user_id)
        return _user_from_record(row)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(f"SELECT {USER_COLUMNS} FROM users WHERE email = $1", email)
        return _user_from_record(row)

    async def get_users(self, user_ids: Iterable[UUID]) -> list[User]:
        """Load several users at once; missing ids are skipped"""
        ids = list(user_ids)
        if not ids:
            return []
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = ANY($1::uuid[]) ORDER BY created_at",
                ids,
            )
        return [_user_from_record(row) for row in rows]

    async def list_users(self) -> list[User]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at")
        return [_user_from_record(row) for row in rows]

    async def insert_user(self, user: User) -> User:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO users (
                        id, name, email, password_hash,
                        followers_count, following_count, posts_count,
                        followers_list, following_list, posts_list, created_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                """,
                    user.id,
                    user.name,
                    user.email,
                    user.password_hash,
                    user.followers_count,
                    user.following_count,
                    user.posts_count,
                    user.followers_list,
                    user.following_list,
                    user.posts_list,
                    user.created_at,
                )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateKeyError(str(exc)) from exc
        return user

    # Follow edges

    async def add_follow(self, target_id: UUID, acting_id: UUID) -> Optional[User]:
        """
        Record that acting_id follows target_id on both user rows.

        Both rows change in one transaction, the acting row first. Appends
        skip ids already present, so repeating a follow is a no-op.

        Returns:
            The target user after the update, or None if it does not exist.
        """
        pool = await self._get_pool()
        async with pool.acquire() as conn, conn.transaction():
            await _append_reference(conn, acting_id, "following_list", target_id)
            await _append_reference(conn, target_id, "followers_list", acting_id)
            row = await conn.fetchrow(f"SELECT {USER_COLUMNS} FROM users WHERE id = $1", target_id)
        return _user_from_record(row)

    async def remove_follow(self, target_id: UUID, acting_id: UUID) -> Optional[User]:
        """Remove the acting_id -> target_id edge from both rows; returns the target user"""
        pool = await self._get_pool()
        async with pool.acquire() as conn, conn.transaction():
            await _remove_reference(conn, acting_id, "following_list", target_id)
            row = await _remove_reference(conn, target_id, "followers_list", acting_id)
        return _user_from_record(row)

    # Posts

    async def insert_post(self, post: Post) -> Optional[User]:
        """Insert a post and append it to its owner's post list in one transaction; returns the owner"""
        pool = await self._get_pool()
        async with pool.acquire() as conn, conn.transaction():
            await conn.execute(
                """
                INSERT INTO posts (id, user_id, content, created_at)
                VALUES ($1, $2, $3, $4)
            """,
                post.id,
                post.user_id,
                post.content,
                post.created_at,
            )
            row = await _append_reference(conn, post.user_id, "posts_list", post.id)
        return _user_from_record(row)

    async def get_posts(self, post_ids: Iterable[UUID]) -> list[Post]:
        ids = list(post_ids)
        if not ids:
            return []
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(f"SELECT {POST_COLUMNS} FROM posts WHERE id = ANY($1::uuid[])", ids)
        return [Post(**dict(row)) for row in rows]

    async def find_posts_by_owners(self, owner_ids: Iterable[UUID]) -> list[Post]:
        ids = list(owner_ids)
        if not ids:
            return []
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(f"SELECT {POST_COLUMNS} FROM posts WHERE user_id = ANY($1::uuid[])", ids)
        return [Post(**dict(row)) for row in rows]


async def _append_reference(conn: Connection, user_id: UUID, column: str, ref_id: UUID) -> Optional[Record]:
    """Append ref_id to one reference list unless present; returns the row only if it changed"""
    count_column = REFERENCE_COUNTS[column]
    return await conn.fetchrow(
        f"""
        UPDATE users
        SET {column} = array_append({column}, $2),
            {count_column} = cardinality(array_append({column}, $2))
        WHERE id = $1 AND NOT ($2 = ANY({column}))
        RETURNING {USER_COLUMNS}
    """,
        user_id,
        ref_id,
    )


async def _remove_reference(conn: Connection, user_id: UUID, column: str, ref_id: UUID) -> Optional[Record]:
    count_column = REFERENCE_COUNTS[column]
    return await conn.fetchrow(
        f"""
        UPDATE users
        SET {column} = array_remove({column}, $2),
            {count_column} = cardinality(array_remove({column}, $2))
        WHERE id = $1
        RETURNING {USER_COLUMNS}
    """,
        user_id,
        ref_id,
    )


def _user_from_record(row: Optional[Record]) -> Optional[User]:
    if row is None:
        return None
    data = dict(row)
    for field in REFERENCE_COUNTS:
        data[field] = list(data[field] or [])
    return User(**data)


def get_db(request: Request) -> Database:
    """FastAPI dependency returning the application's storage client"""
    return request.app.state.db
