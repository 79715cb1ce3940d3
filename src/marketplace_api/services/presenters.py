"""Convert ORM instances into API schemas, inlining stored images."""
from __future__ import annotations

from marketplace_api.db.time import as_utc
from marketplace_api.models import Comment, Post, User
from marketplace_api.schemas.comment import CommentResponse
from marketplace_api.schemas.post import PostResponse
from marketplace_api.schemas.user import UserResponse, UserSummary
from marketplace_api.services.media import MediaStore


def to_user_summary(user: User | None, media: MediaStore) -> UserSummary | None:
    """Return the embeddable author view of `user`."""
    if user is None:
        return None
    return UserSummary(
        id=user.id,
        username=user.username,
        profile_image=media.encode("user", user.profile_image),
    )


def to_user_response(user: User, media: MediaStore) -> UserResponse:
    """Convert a User ORM instance to the full account schema."""
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        phone=user.phone,
        role=user.role,
        profile_image=media.encode("user", user.profile_image),
        created_at=as_utc(user.created_at),
    )


def to_post_response(
    post: Post,
    media: MediaStore,
    *,
    viewer: User | None = None,
    include_author: bool = True,
) -> PostResponse:
    """Convert a Post ORM instance to an API schema.

    `is_liked` is only populated when a viewer is known.
    """
    likers = post.likers
    return PostResponse(
        id=post.id,
        author_id=post.author_id,
        title=post.title,
        description=post.description,
        category=post.category,
        price=post.price,
        image=media.encode("post", post.image),
        created_at=as_utc(post.created_at),
        updated_at=as_utc(post.updated_at),
        likes_count=len(likers),
        comments_count=len(post.comments),
        is_liked=(viewer in likers) if viewer is not None else None,
        author=to_user_summary(post.author, media) if include_author else None,
    )


def to_comment_response(comment: Comment, media: MediaStore) -> CommentResponse:
    """Convert a Comment ORM instance to an API schema."""
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        author_id=comment.author_id,
        text=comment.text,
        created_at=as_utc(comment.created_at),
        author=to_user_summary(comment.author, media),
    )
