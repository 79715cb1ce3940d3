"""Schemas for AI price suggestions."""

from pydantic import BaseModel, Field


class PriceSuggestionResponse(BaseModel):
    """Free-text model reply together with the price parsed out of it."""

    message: str = Field(..., description="Full text returned by the model")
    suggested_price: float | None = Field(
        None,
        description="First number found in the reply, if any",
    )
