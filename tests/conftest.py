import asyncio
import os

# Keep password hashing fast in tests
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from collections.abc import Iterable
from typing import Optional
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from flock.core.db import Database, DuplicateKeyError
from flock.main import create_app
from flock.models.models import Post, User


class InMemoryDatabase(Database):
    """
    Database stand-in keeping documents in dicts.

    Every method yields to the event loop before touching the dicts, the
    way a real driver suspends on I/O, and hands out copies. Each write
    applies to the stored document in one step, as the SQL statements do.
    """

    def __init__(self):
        super().__init__(dsn="memory://")
        self.users: dict[UUID, User] = {}
        self.posts: dict[UUID, Post] = {}
        self.connected = False

    async def connect(self, create_tables: bool = True) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def create_tables(self) -> None:
        pass

    async def get_user(self, user_id: UUID) -> Optional[User]:
        await asyncio.sleep(0)
        return _copy(self.users.get(user_id))

    async def get_user_by_email(self, email: str) -> Optional[User]:
        await asyncio.sleep(0)
        for user in self.users.values():
            if user.email == email:
                return _copy(user)
        return None

    async def get_users(self, user_ids: Iterable[UUID]) -> list[User]:
        await asyncio.sleep(0)
        ids = set(user_ids)
        return [_copy(user) for user in self.users.values() if user.id in ids]

    async def list_users(self) -> list[User]:
        await asyncio.sleep(0)
        return [_copy(user) for user in self.users.values()]

    async def insert_user(self, user: User) -> User:
        await asyncio.sleep(0)
        if any(existing.email == user.email for existing in self.users.values()):
            raise DuplicateKeyError("users_email_key")
        self.users[user.id] = _copy(user)
        return user

    async def add_follow(self, target_id: UUID, acting_id: UUID) -> Optional[User]:
        await asyncio.sleep(0)
        if acting_id in self.users:
            _append(self.users[acting_id], "following", target_id)
        if target_id in self.users:
            _append(self.users[target_id], "followers", acting_id)
        return _copy(self.users.get(target_id))

    async def remove_follow(self, target_id: UUID, acting_id: UUID) -> Optional[User]:
        await asyncio.sleep(0)
        if acting_id in self.users:
            _remove(self.users[acting_id], "following", target_id)
        if target_id in self.users:
            _remove(self.users[target_id], "followers", acting_id)
        return _copy(self.users.get(target_id))

    async def insert_post(self, post: Post) -> Optional[User]:
        await asyncio.sleep(0)
        owner = self.users.get(post.user_id)
        if owner is None:
            return None
        self.posts[post.id] = _copy(post)
        _append(owner, "posts", post.id)
        return _copy(owner)

    async def get_posts(self, post_ids: Iterable[UUID]) -> list[Post]:
        await asyncio.sleep(0)
        ids = set(post_ids)
        return [_copy(post) for post in self.posts.values() if post.id in ids]

    async def find_posts_by_owners(self, owner_ids: Iterable[UUID]) -> list[Post]:
        await asyncio.sleep(0)
        ids = set(owner_ids)
        return [_copy(post) for post in self.posts.values() if post.user_id in ids]


def _copy(document):
    return document.model_copy(deep=True) if document is not None else None


def _append(user: User, kind: str, ref_id: UUID) -> None:
    refs = getattr(user, f"{kind}_list")
    if ref_id not in refs:
        refs.append(ref_id)
    setattr(user, f"{kind}_count", len(refs))


def _remove(user: User, kind: str, ref_id: UUID) -> None:
    refs = [uid for uid in getattr(user, f"{kind}_list") if uid != ref_id]
    setattr(user, f"{kind}_list", refs)
    setattr(user, f"{kind}_count", len(refs))


@pytest.fixture
def db():
    return InMemoryDatabase()


@pytest.fixture
def client(db):
    app = create_app(db)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    """Insert a user directly into the store"""

    async def _make_user(name: str, email: Optional[str] = None) -> User:
        user = User(name=name, email=email or f"{name.lower()}@example.com", password_hash="not-a-real-hash")
        return await db.insert_user(user)

    return _make_user


def register(client: TestClient, name: str, password: str = "secret-password") -> str:
    """Register and log in through the API, returning the new user's id"""
    email = f"{name.lower()}@example.com"
    response = client.post("/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201
    response = client.post("/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["user"]["id"]
