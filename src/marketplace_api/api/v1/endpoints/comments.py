# src/marketplace_api/api/v1/endpoints/comments.py
"""Comment endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import desc

from marketplace_api.api.v1.dependencies import CurrentUserDep, MediaStoreDep, SessionDep
from marketplace_api.models import Comment, Post
from marketplace_api.schemas.comment import (
    CommentCreate,
    CommentMessageResponse,
    CommentResponse,
)
from marketplace_api.schemas.common import MessageResponse
from marketplace_api.services.presenters import to_comment_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post(
    "/{post_id}",
    response_model=CommentMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: int,
    payload: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
) -> CommentMessageResponse:
    """Add a comment to a post."""
    if db.get(Post, post_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )

    comment = Comment(post_id=post_id, author_id=current_user.id, text=payload.text)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    logger.info("User %s commented on post %s", current_user.id, post_id)

    return CommentMessageResponse(
        message="Comment added",
        comment=to_comment_response(comment, media),
    )


@router.get("/{post_id}", response_model=list[CommentResponse])
async def list_comments(
    post_id: int,
    db: SessionDep,
    media: MediaStoreDep,
) -> list[CommentResponse]:
    """List a post's comments, newest first."""
    if db.get(Post, post_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )

    comments = (
        db.query(Comment)
        .filter(Comment.post_id == post_id)
        .order_by(desc(Comment.created_at), desc(Comment.id))
        .all()
    )
    return [to_comment_response(comment, media) for comment in comments]


@router.delete("/{post_id}/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    post_id: int,
    comment_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Delete a comment; allowed for its author and for the owner of the post."""
    comment = db.get(Comment, comment_id)
    if comment is None or comment.post_id != post_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found",
        )

    post_owner_id = comment.post.author_id if comment.post is not None else None
    if current_user.id not in (comment.author_id, post_owner_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized to delete this comment",
        )

    db.delete(comment)
    db.commit()
    logger.info("User %s deleted comment %s", current_user.id, comment_id)

    return MessageResponse(message="Comment deleted successfully")
