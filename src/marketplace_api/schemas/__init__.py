# src/marketplace_api/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .ai import PriceSuggestionResponse
from .comment import CommentCreate, CommentResponse
from .common import FieldUpdateRequest, MessageResponse
from .post import PostListResponse, PostResponse
from .user import LoginRequest, RegisterRequest, UserResponse, UserSummary

__all__ = [
    "PriceSuggestionResponse",
    "CommentCreate", "CommentResponse",
    "FieldUpdateRequest", "MessageResponse",
    "PostListResponse", "PostResponse",
    "LoginRequest", "RegisterRequest", "UserResponse", "UserSummary",
]
