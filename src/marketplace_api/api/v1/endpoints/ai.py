# src/marketplace_api/api/v1/endpoints/ai.py
"""AI-assisted price suggestions for new listings."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Form, HTTPException, status

from marketplace_api.api.v1.dependencies import CurrentUserDep
from marketplace_api.schemas.ai import PriceSuggestionResponse
from marketplace_api.services.price_suggestion import (
    PriceSuggestionClient,
    SuggestionError,
    SuggestionUpstreamError,
    get_price_suggestion_client,
)

router = APIRouter(prefix="/ai", tags=["ai"])

PriceSuggestionClientDep = Annotated[PriceSuggestionClient, Depends(get_price_suggestion_client)]


@router.post("/", response_model=PriceSuggestionResponse)
async def suggest_price(
    current_user: CurrentUserDep,
    client: PriceSuggestionClientDep,
    title: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    category: Annotated[str | None, Form()] = None,
) -> PriceSuggestionResponse:
    """Ask the language model for a reasonable price for the described item."""
    if not (title and title.strip() and description and description.strip()
            and category and category.strip()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields",
        )

    try:
        suggestion = await client.suggest(title.strip(), description.strip(), category.strip())
    except SuggestionUpstreamError as err:
        raise HTTPException(status_code=err.status_code, detail=err.detail) from err
    except SuggestionError as err:
        raise HTTPException(status_code=err.status_code, detail=str(err)) from err

    return PriceSuggestionResponse(
        message=suggestion.message,
        suggested_price=suggestion.suggested_price,
    )
