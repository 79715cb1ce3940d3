"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from .user import UserSummary


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    author_id: int | None
    title: str
    description: str | None = None
    category: str
    price: float
    image: str | None = Field(None, description="Base64-encoded image, if any")
    created_at: datetime | None = None
    updated_at: datetime | None = None
    likes_count: int = 0
    comments_count: int = 0
    is_liked: bool | None = Field(None, description="Whether the caller likes this post")
    author: UserSummary | None = None


class PostListResponse(BaseModel):
    """Page of posts plus the total matching count."""

    total: int
    posts: list[PostResponse]


class PostMessageResponse(BaseModel):
    """Acknowledgement carrying the affected post."""

    message: str
    post: PostResponse


class PostAuthorResponse(BaseModel):
    """Contact details of a post's author."""

    author_name: str
    author_phone: str | None = None


class PostOwnerResponse(BaseModel):
    """Identifier of a post's owner."""

    owner_id: int | None


class LikeResponse(BaseModel):
    """Result of a like/unlike toggle."""

    message: str
    liked_posts: list[int]


class CommentCountResponse(BaseModel):
    """Number of comments on a post."""

    count: int
