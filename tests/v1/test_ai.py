# tests/v1/test_ai.py
"""Tests for AI price suggestions, with the upstream API stubbed out."""

import json

import httpx
import pytest
from fastapi import status

from marketplace_api.services.price_suggestion import (
    PriceSuggestionClient,
    SuggestionConfigError,
    SuggestionEmptyError,
    build_prompt,
    extract_price,
    get_price_suggestion_client,
)

FORM = {"title": "Road bike", "description": "Carbon frame", "category": "sports"}


def _reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _client_for(handler, api_key: str | None = "test-key") -> PriceSuggestionClient:
    return PriceSuggestionClient(
        api_key,
        model="gemini-test",
        base_url="https://ai.example.com/v1beta",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture()
def use_ai_client(app):
    def _install(client: PriceSuggestionClient) -> None:
        app.dependency_overrides[get_price_suggestion_client] = lambda: client

    try:
        yield _install
    finally:
        app.dependency_overrides.pop(get_price_suggestion_client, None)


class TestExtractPrice:
    def test_first_number_wins(self):
        assert extract_price("I'd say $1,250.50, maybe 1,400 at most") == 1250.5

    def test_integer(self):
        assert extract_price("Around 300 dollars") == 300.0

    def test_no_number(self):
        assert extract_price("Hard to say") is None


def test_prompt_mentions_every_field():
    prompt = build_prompt("Lamp", "Brass", "home")
    assert 'Title: "Lamp"' in prompt
    assert 'Description: "Brass"' in prompt
    assert 'Category: "home"' in prompt


@pytest.mark.asyncio
async def test_client_posts_prompt_with_key():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply("Suggested price: 450"))

    suggestion = await _client_for(handler).suggest("Road bike", "Carbon frame", "sports")

    assert suggestion.suggested_price == 450.0
    assert seen["url"].path == "/v1beta/models/gemini-test:generateContent"
    assert seen["url"].params["key"] == "test-key"
    assert "Road bike" in seen["body"]["contents"][0]["parts"][0]["text"]


@pytest.mark.asyncio
async def test_client_requires_key():
    with pytest.raises(SuggestionConfigError):
        await _client_for(lambda request: httpx.Response(200), api_key=None).suggest("a", "b", "c")


@pytest.mark.asyncio
async def test_client_reports_missing_parts():
    client = _client_for(lambda request: httpx.Response(200, json={"candidates": [{"content": {}}]}))
    with pytest.raises(SuggestionEmptyError, match="No content returned from AI."):
        await client.suggest("a", "b", "c")


def test_endpoint_returns_message_and_price(client, auth_headers, use_ai_client):
    use_ai_client(_client_for(lambda request: httpx.Response(200, json=_reply("About 1,200 USD"))))

    response = client.post("/api/ai/", data=FORM, headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "About 1,200 USD", "suggested_price": 1200.0}


def test_endpoint_reply_without_number(client, auth_headers, use_ai_client):
    use_ai_client(_client_for(lambda request: httpx.Response(200, json=_reply("It depends."))))

    response = client.post("/api/ai/", data=FORM, headers=auth_headers)

    assert response.json() == {"message": "It depends.", "suggested_price": None}


def test_endpoint_missing_fields(client, auth_headers, use_ai_client):
    use_ai_client(_client_for(lambda request: httpx.Response(200, json=_reply("1"))))

    response = client.post("/api/ai/", data={"title": "Road bike"}, headers=auth_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Missing required fields"


def test_endpoint_missing_key(client, auth_headers, use_ai_client):
    use_ai_client(_client_for(lambda request: httpx.Response(200), api_key=None))

    response = client.post("/api/ai/", data=FORM, headers=auth_headers)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["detail"] == "AI API key is missing"


def test_endpoint_no_candidates(client, auth_headers, use_ai_client):
    use_ai_client(_client_for(lambda request: httpx.Response(200, json={"candidates": []})))

    response = client.post("/api/ai/", data=FORM, headers=auth_headers)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["detail"] == "No suggestions found from AI."


def test_endpoint_relays_upstream_status(client, auth_headers, use_ai_client):
    use_ai_client(
        _client_for(lambda request: httpx.Response(429, json={"error": "quota exceeded"}))
    )

    response = client.post("/api/ai/", data=FORM, headers=auth_headers)

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert response.json()["detail"] == {"error": "quota exceeded"}


def test_endpoint_transport_failure(client, auth_headers, use_ai_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    use_ai_client(_client_for(handler))

    response = client.post("/api/ai/", data=FORM, headers=auth_headers)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["detail"] == "An error occurred."


def test_endpoint_requires_authentication(client):
    assert client.post("/api/ai/", data=FORM).status_code == status.HTTP_401_UNAUTHORIZED
