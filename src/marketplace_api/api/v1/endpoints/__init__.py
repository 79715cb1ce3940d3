# src/marketplace_api/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .ai import router as ai_router
from .auth import router as auth_router
from .comments import router as comments_router
from .posts import router as posts_router
from .users import router as users_router

__all__ = [
    "ai_router",
    "auth_router",
    "comments_router",
    "posts_router",
    "users_router",
]
