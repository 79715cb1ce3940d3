# tests/v1/test_integration.py
"""Integration tests that verify multiple components work together."""

from conftest import PNG_BYTES
from fastapi import status


def _register_and_login(client, username: str, email: str) -> dict[str, str]:
    registered = client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": "pw-" + username},
    )
    assert registered.status_code == status.HTTP_201_CREATED

    login = client.post("/api/auth/login", json={"email": email, "password": "pw-" + username})
    assert login.status_code == status.HTTP_200_OK
    return {"Authorization": f"Bearer {login.json()['token']}"}


def test_full_listing_lifecycle(client, media_store):
    """Register, post, get refused by a stranger, delete, and confirm it is gone."""
    seller = _register_and_login(client, "seller", "seller@example.com")
    buyer = _register_and_login(client, "buyer", "buyer@example.com")

    created = client.post(
        "/api/posts/",
        data={"title": "Camera", "price": "300", "category": "electronics"},
        files={"image": ("camera.png", PNG_BYTES, "image/png")},
        headers=seller,
    )
    assert created.status_code == status.HTTP_201_CREATED
    post_id = created.json()["post"]["id"]

    hijack = client.put(f"/api/posts/{post_id}", data={"price": "1"}, headers=buyer)
    assert hijack.status_code == status.HTTP_403_FORBIDDEN

    liked = client.post(f"/api/posts/{post_id}/like", headers=buyer)
    assert liked.json()["liked_posts"] == [post_id]
    comment = client.post(f"/api/comments/{post_id}", json={"text": "Still for sale?"}, headers=buyer)
    assert comment.status_code == status.HTTP_201_CREATED

    detail = client.get(f"/api/posts/{post_id}").json()
    assert detail["price"] == 300
    assert detail["likes_count"] == 1
    assert detail["comments_count"] == 1

    deleted = client.delete(f"/api/posts/{post_id}", headers=seller)
    assert deleted.status_code == status.HTTP_200_OK

    assert client.get(f"/api/posts/{post_id}").status_code == status.HTTP_404_NOT_FOUND
    assert not any(media_store.directory("post").iterdir())
    assert client.get("/api/users/liked-posts", headers=buyer).json()["total"] == 0


def test_refreshed_token_keeps_working(client):
    headers = _register_and_login(client, "renter", "renter@example.com")
    token = headers["Authorization"].removeprefix("Bearer ")

    refreshed = client.post("/api/auth/refresh", json={"token": token})
    assert refreshed.status_code == status.HTTP_200_OK

    me = client.get(
        "/api/users/",
        headers={"Authorization": f"Bearer {refreshed.json()['token']}"},
    )
    assert me.json()["username"] == "renter"
