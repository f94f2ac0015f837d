from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, EmailStr, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


# Database models
class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    email: EmailStr
    password_hash: str
    followers_count: int = 0
    following_count: int = 0
    posts_count: int = 0
    followers_list: list[UUID] = Field(default_factory=list)  # Users following this user
    following_list: list[UUID] = Field(default_factory=list)  # Users this user follows
    posts_list: list[UUID] = Field(default_factory=list)  # Oldest first
    created_at: datetime = Field(default_factory=_utcnow)


class Post(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    content: str
    created_at: datetime = Field(default_factory=_utcnow)
