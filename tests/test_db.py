"""
Tests for the asyncpg storage client.

The real Database runs against a fake pool whose connection records every
statement, so the SQL issued and its transaction boundaries can be checked
without a PostgreSQL server.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from uuid import uuid4

import asyncpg
import pytest

from flock.core.db import Database, DuplicateKeyError
from flock.models.models import Post, User


class RecordingConnection:
    def __init__(self, rows=None, fail_on=None, error=None):
        self.calls = []
        self.rows = list(rows or [])
        self.fail_on = fail_on
        self.error = error or RuntimeError("statement failed")

    def _record(self, kind, query, args):
        self.calls.append((kind, " ".join(query.split()), args))
        if self.fail_on and self.fail_on in query:
            raise self.error

    async def execute(self, query, *args):
        self._record("execute", query, args)
        return "OK"

    async def fetchrow(self, query, *args):
        self._record("fetchrow", query, args)
        return self.rows.pop(0) if self.rows else None

    async def fetch(self, query, *args):
        self._record("fetch", query, args)
        return self.rows

    @asynccontextmanager
    async def transaction(self):
        self.calls.append(("begin", None, None))
        try:
            yield
        except BaseException:
            self.calls.append(("rollback", None, None))
            raise
        self.calls.append(("commit", None, None))

    @property
    def kinds(self):
        return [kind for kind, _, _ in self.calls]

    def queries(self, kind):
        return [query for call_kind, query, _ in self.calls if call_kind == kind]


class RecordingPool:
    def __init__(self, conn):
        self.conn = conn
        self.acquired = 0
        self.closed = False

    @asynccontextmanager
    async def acquire(self):
        self.acquired += 1
        yield self.conn

    async def close(self):
        self.closed = True


def user_row(user_id=None, **overrides):
    row = {
        "id": user_id or uuid4(),
        "name": "Bob",
        "email": "bob@example.com",
        "password_hash": "hash",
        "followers_count": 0,
        "following_count": 0,
        "posts_count": 0,
        "followers_list": [],
        "following_list": [],
        "posts_list": [],
        "created_at": datetime(2024, 1, 1, tzinfo=UTC),
    }
    row.update(overrides)
    return row


def connected(conn):
    db = Database(dsn="postgresql://localhost/flock_test")
    db.pool = RecordingPool(conn)
    return db


@pytest.mark.asyncio
async def test_insert_post_appends_owner_reference_in_one_transaction():
    owner_id = uuid4()
    post = Post(user_id=owner_id, content="hello")
    conn = RecordingConnection(rows=[user_row(owner_id, posts_list=[post.id], posts_count=1)])
    db = connected(conn)

    owner = await db.insert_post(post)

    assert conn.kinds == ["begin", "execute", "fetchrow", "commit"]
    insert = conn.queries("execute")[0]
    assert insert.startswith("INSERT INTO posts")
    update = conn.queries("fetchrow")[0]
    assert "posts_list = array_append(posts_list, $2)" in update
    assert "posts_count = cardinality(array_append(posts_list, $2))" in update
    assert "followers_list =" not in update
    assert "following_list =" not in update
    assert conn.calls[2][2] == (owner_id, post.id)
    assert owner.posts_list == [post.id]
    assert owner.posts_count == 1


@pytest.mark.asyncio
async def test_add_follow_writes_only_follow_lists():
    target_id, acting_id = uuid4(), uuid4()
    conn = RecordingConnection(rows=[None, None, user_row(target_id, followers_list=[acting_id], followers_count=1)])
    db = connected(conn)

    target = await db.add_follow(target_id, acting_id)

    assert conn.kinds == ["begin", "fetchrow", "fetchrow", "fetchrow", "commit"]
    following_update, followers_update, _ = conn.queries("fetchrow")
    assert "following_list = array_append(following_list, $2)" in following_update
    assert "NOT ($2 = ANY(following_list))" in following_update
    assert conn.calls[1][2] == (acting_id, target_id)
    assert "followers_list = array_append(followers_list, $2)" in followers_update
    assert conn.calls[2][2] == (target_id, acting_id)
    for query in (following_update, followers_update):
        assert "posts_list =" not in query
    assert target.followers_list == [acting_id]


@pytest.mark.asyncio
async def test_remove_follow_recomputes_counts_from_lists():
    target_id, acting_id = uuid4(), uuid4()
    conn = RecordingConnection(rows=[None, user_row(target_id)])
    db = connected(conn)

    target = await db.remove_follow(target_id, acting_id)

    assert conn.kinds == ["begin", "fetchrow", "fetchrow", "commit"]
    following_update, followers_update = conn.queries("fetchrow")
    assert "following_count = cardinality(array_remove(following_list, $2))" in following_update
    assert "followers_count = cardinality(array_remove(followers_list, $2))" in followers_update
    assert target.id == target_id
    assert target.followers_list == []


@pytest.mark.asyncio
async def test_failed_statement_rolls_back_transaction():
    conn = RecordingConnection(fail_on="followers_list = array_append")
    db = connected(conn)

    with pytest.raises(RuntimeError):
        await db.add_follow(uuid4(), uuid4())

    assert conn.kinds == ["begin", "fetchrow", "fetchrow", "rollback"]


@pytest.mark.asyncio
async def test_insert_user_maps_unique_violation():
    error = asyncpg.UniqueViolationError('duplicate key value violates unique constraint "users_email_key"')
    conn = RecordingConnection(fail_on="INSERT INTO users", error=error)
    db = connected(conn)
    user = User(name="Bob", email="bob@example.com", password_hash="hash")

    with pytest.raises(DuplicateKeyError) as exc_info:
        await db.insert_user(user)

    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_user_record_conversion():
    user_id = uuid4()
    conn = RecordingConnection(rows=[user_row(user_id, followers_list=None, posts_list=None), None])
    db = connected(conn)

    user = await db.get_user(user_id)
    missing = await db.get_user(uuid4())

    assert user.id == user_id
    assert user.followers_list == []
    assert user.posts_list == []
    assert missing is None
    assert conn.calls[0][2] == (user_id,)


@pytest.mark.asyncio
async def test_batch_reads_skip_empty_id_lists():
    conn = RecordingConnection()
    db = connected(conn)

    assert await db.get_users([]) == []
    assert await db.get_posts([]) == []
    assert await db.find_posts_by_owners([]) == []
    assert conn.calls == []
    assert db.pool.acquired == 0


@pytest.mark.asyncio
async def test_connects_on_first_query_without_lifespan(monkeypatch):
    conn = RecordingConnection()
    pools = []

    async def fake_create_pool(dsn, **kwargs):
        await asyncio.sleep(0)
        pool = RecordingPool(conn)
        pools.append((dsn, kwargs, pool))
        return pool

    monkeypatch.setattr(asyncpg, "create_pool", fake_create_pool)
    db = Database(dsn="postgresql://localhost/flock_test", min_size=1, max_size=5)

    await asyncio.gather(db.get_user(uuid4()), db.list_users())

    assert len(pools) == 1
    assert pools[0][0] == "postgresql://localhost/flock_test"
    assert pools[0][1] == {"min_size": 1, "max_size": 5}
    ddl = conn.queries("execute")
    assert ddl[0].startswith("CREATE TABLE IF NOT EXISTS users")
    assert ddl[1].startswith("CREATE TABLE IF NOT EXISTS posts")
    assert len(conn.queries("fetchrow")) == 1
    assert len(conn.queries("fetch")) == 1

    await db.disconnect()
    assert pools[0][2].closed
    assert db.pool is None
