from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class WireModel(BaseModel):
    """Base for request/response bodies; fields travel under their camelCase aliases"""

    class Config:
        populate_by_name = True


class MessageResponse(WireModel):
    message: str


# Auth Schemas
class UserCreate(WireModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserLogin(WireModel):
    email: EmailStr
    password: str


class LoginUser(WireModel):
    name: str
    email: EmailStr
    id: UUID


class LoginResponse(WireModel):
    token: str
    user: LoginUser


# User Schemas
class FollowRequest(WireModel):
    user_id: UUID = Field(alias="userId")


class UserSummary(WireModel):
    id: UUID = Field(alias="_id")
    name: str
    following_count: int = Field(alias="followingCount")
    followers_list: list[UUID] = Field(alias="followersList")


class UserStatusEntry(WireModel):
    id: UUID = Field(alias="_id")
    name: str
    following_count: int = Field(alias="followingCount")
    followers_count: int = Field(alias="followersCount")
    followers_list: list[UUID] = Field(alias="followersList")
    following_list: list[UUID] = Field(alias="followingList")
    is_following: bool = Field(alias="isFollowing")


class UserPublic(WireModel):
    id: UUID = Field(alias="_id")
    name: str
    email: EmailStr
    followers_count: int = Field(alias="followersCount")
    following_count: int = Field(alias="followingCount")
    posts_count: int = Field(alias="postsCount")
    followers_list: list[UUID] = Field(alias="followersList")
    following_list: list[UUID] = Field(alias="followingList")
    posts_list: list[UUID] = Field(alias="postsList")


class FollowResponse(WireModel):
    message: str
    followed_user: Optional[UserPublic] = Field(default=None, alias="followedUser")


class FollowerSummary(WireModel):
    id: UUID = Field(alias="_id")
    name: str
    email: EmailStr


class FollowerDetail(FollowerSummary):
    following_count: int = Field(alias="followingCount")
    following_list: list[UUID] = Field(alias="followingList")


class FollowingDetail(FollowerSummary):
    following_count: int = Field(alias="followingCount")


# Post Schemas
class PostCreate(WireModel):
    user_id: UUID = Field(alias="userId")
    content: str


class OwnerSummary(WireModel):
    id: UUID = Field(alias="_id")
    name: str


class PostResponse(WireModel):
    id: UUID = Field(alias="_id")
    user: Union[OwnerSummary, UUID, None]
    content: str
    created_at: datetime = Field(alias="createdAt")


class PostAuthor(WireModel):
    id: UUID
    name: str
    posts_count: int = Field(alias="postsCount")


class PostCreateResponse(WireModel):
    message: str
    post: PostResponse
    user: PostAuthor


class UserDetail(WireModel):
    id: UUID = Field(alias="_id")
    name: str
    email: EmailStr
    followers_count: int = Field(alias="followersCount")
    following_count: int = Field(alias="followingCount")
    posts_count: int = Field(alias="postsCount")
    followers_list: list[FollowerDetail] = Field(alias="followersList")
    following_list: list[FollowingDetail] = Field(alias="followingList")
    posts_list: list[PostResponse] = Field(alias="postsList")
