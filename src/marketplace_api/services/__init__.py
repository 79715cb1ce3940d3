# src/marketplace_api/services/__init__.py
"""Business logic services for the marketplace application."""

from .media import MediaStore
from .oauth import GoogleOAuthClient
from .price_suggestion import PriceSuggestionClient
from .tokens import TokenService

__all__ = [
    "MediaStore",
    "GoogleOAuthClient",
    "PriceSuggestionClient",
    "TokenService",
]
