"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement returned by mutating endpoints."""

    message: str = Field(..., description="Human-readable outcome")


class FieldUpdateRequest(BaseModel):
    """Request to set one named field on one record.

    `id` and `field` are optional at the schema level so that their absence is
    reported with a descriptive 400 rather than a generic validation error.
    """

    id: int | None = Field(None, description="Identifier of the record to patch")
    field: str | None = Field(None, description="Name of the field to set")
    value: Any = Field(None, description="New value; strings are trimmed")
