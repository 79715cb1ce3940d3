"""Comment-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from .user import UserSummary


class CommentCreate(BaseModel):
    """Schema for creating a comment."""

    text: str = Field(..., min_length=1, max_length=2000, description="Comment body")

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment text must not be blank")
        return v


class CommentResponse(BaseModel):
    """Schema for comment information returned by the API."""

    id: int
    post_id: int
    author_id: int | None
    text: str
    created_at: datetime | None = None
    author: UserSummary | None = None


class CommentMessageResponse(BaseModel):
    """Acknowledgement carrying the created comment."""

    message: str
    comment: CommentResponse


class CommentListResponse(BaseModel):
    """Comments attached to a post."""

    comments: list[CommentResponse]
