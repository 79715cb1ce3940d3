# src/marketplace_api/models/__init__.py
"""SQLAlchemy models for the marketplace application."""

from .comment import Comment
from .post import Post, post_likes
from .user import ROLE_ADMIN, ROLE_USER, User

__all__ = [
    "Comment",
    "Post", "post_likes",
    "User", "ROLE_ADMIN", "ROLE_USER",
]
