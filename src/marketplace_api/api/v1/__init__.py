# src/marketplace_api/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    ai_router,
    auth_router,
    comments_router,
    posts_router,
    users_router,
)

__all__ = [
    "auth_router",
    "posts_router",
    "comments_router",
    "users_router",
    "ai_router",
]
