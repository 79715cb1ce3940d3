"""Client for the generative text API used to suggest listing prices.

The client sends the listing's title, description and category to a Gemini
`generateContent` endpoint and pulls the first number out of the free-text
reply. Nothing is retried: upstream failures are surfaced to the caller.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from marketplace_api.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_INTERNAL_SERVER_ERROR = 500

_NUMBER_PATTERN = re.compile(r"\d[\d,]*(?:\.\d+)?")


class SuggestionError(RuntimeError):
    """Base exception for price suggestion failures."""

    status_code: int = HTTP_INTERNAL_SERVER_ERROR


class SuggestionConfigError(SuggestionError):
    """Raised when the API key is not configured."""


class SuggestionEmptyError(SuggestionError):
    """Raised when the upstream reply carries no usable content."""


class SuggestionUpstreamError(SuggestionError):
    """Raised when the upstream call fails; keeps the upstream status if known."""

    def __init__(self, message: str, status_code: int = HTTP_INTERNAL_SERVER_ERROR,
                 detail: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail if detail is not None else message


@dataclass(frozen=True)
class PriceSuggestion:
    """Model reply and the price extracted from it."""

    message: str
    suggested_price: float | None


def build_prompt(title: str, description: str, category: str) -> str:
    """Compose the natural-language prompt sent to the model."""
    return (
        f'Given the product details: \n\nTitle: "{title}"\nDescription: "{description}"\n'
        f'Category: "{category}". Suggest a reasonable price.'
    )


def extract_price(text: str) -> float | None:
    """Return the first numeric substring of `text` as a float, if any."""
    match = _NUMBER_PATTERN.search(text)
    if match is None:
        return None
    try:
        return float(match.group(0).replace(",", ""))
    except ValueError:  # pragma: no cover - pattern only matches digits
        return None


class PriceSuggestionClient:
    """Async wrapper around the Gemini `generateContent` endpoint."""

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = "gemini-1.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def suggest(self, title: str, description: str, category: str) -> PriceSuggestion:
        """Ask the model for a price for the described product.

        Raises:
            SuggestionConfigError: No API key is configured.
            SuggestionEmptyError: The reply has no candidates or no content.
            SuggestionUpstreamError: The HTTP call failed.
        """
        if not self.api_key:
            raise SuggestionConfigError("AI API key is missing")

        body = {"contents": [{"parts": [{"text": build_prompt(title, description, category)}]}]}
        url = f"{self.base_url}/models/{self.model}:generateContent"

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    url,
                    params={"key": self.api_key},
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                upstream = exc.response
                logger.error("AI upstream responded with %s: %s", upstream.status_code, upstream.text)
                try:
                    detail: Any = upstream.json()
                except ValueError:
                    detail = upstream.text or "An error occurred."
                raise SuggestionUpstreamError(
                    f"AI upstream responded with {upstream.status_code}",
                    status_code=upstream.status_code,
                    detail=detail,
                ) from exc
            except httpx.HTTPError as exc:
                logger.error("AI request failed: %s", exc)
                raise SuggestionUpstreamError("An error occurred.") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise SuggestionEmptyError("No suggestions found from AI.") from exc
        return self._parse(payload)

    @staticmethod
    def _parse(payload: Any) -> PriceSuggestion:
        candidates = payload.get("candidates") if isinstance(payload, dict) else None
        if not candidates:
            raise SuggestionEmptyError("No suggestions found from AI.")

        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not parts:
            raise SuggestionEmptyError("No content returned from AI.")

        text = parts[0].get("text") if isinstance(parts[0], dict) else None
        message = text or "No response from AI."
        return PriceSuggestion(message=message, suggested_price=extract_price(message))


def build_price_suggestion_client() -> PriceSuggestionClient:
    """Build a client from the global settings."""
    return PriceSuggestionClient(
        settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout_seconds=settings.ai_timeout_seconds,
    )


def get_price_suggestion_client() -> PriceSuggestionClient:
    """Return a price suggestion client for dependency injection."""
    return build_price_suggestion_client()
