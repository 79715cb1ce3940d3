# tests/v1/test_comments.py
"""Tests for comment endpoints."""

from fastapi import status

from marketplace_api.models import Comment


def _add(client, post_id, text, headers):
    return client.post(f"/api/comments/{post_id}", json={"text": text}, headers=headers)


def test_add_comment(client, test_post, other_user, other_auth_headers):
    response = _add(client, test_post.id, "  Is this still available?  ", other_auth_headers)

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["message"] == "Comment added"
    assert body["comment"]["text"] == "Is this still available?"
    assert body["comment"]["author"]["username"] == other_user.username


def test_blank_comment_is_rejected(client, test_post, auth_headers):
    response = _add(client, test_post.id, "   ", auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_comment_on_missing_post(client, auth_headers):
    response = _add(client, 999, "hello", auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_list_comments_newest_first(client, test_post, auth_headers, other_auth_headers):
    _add(client, test_post.id, "first", other_auth_headers)
    _add(client, test_post.id, "second", auth_headers)

    response = client.get(f"/api/comments/{test_post.id}")

    assert response.status_code == status.HTTP_200_OK
    assert [c["text"] for c in response.json()] == ["second", "first"]


def test_post_comment_views(client, test_post, auth_headers, other_auth_headers):
    _add(client, test_post.id, "first", other_auth_headers)
    _add(client, test_post.id, "second", auth_headers)

    count = client.get(f"/api/posts/{test_post.id}/comments/count")
    listing = client.get(f"/api/posts/{test_post.id}/comments")

    assert count.json() == {"count": 2}
    assert [c["text"] for c in listing.json()["comments"]] == ["first", "second"]


def test_comment_count_for_missing_post(client):
    assert client.get("/api/posts/999/comments/count").status_code == status.HTTP_404_NOT_FOUND


def test_author_can_delete_comment(client, db_session, test_post, other_auth_headers):
    comment_id = _add(client, test_post.id, "typo", other_auth_headers).json()["comment"]["id"]

    response = client.delete(
        f"/api/comments/{test_post.id}/{comment_id}",
        headers=other_auth_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert db_session.get(Comment, comment_id) is None


def test_post_owner_can_delete_comment(client, db_session, test_post, auth_headers, other_auth_headers):
    comment_id = _add(client, test_post.id, "spam", other_auth_headers).json()["comment"]["id"]

    response = client.delete(f"/api/comments/{test_post.id}/{comment_id}", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    assert db_session.get(Comment, comment_id) is None


def test_stranger_cannot_delete_comment(
    client, db_session, test_post, auth_headers, token_service, make_user
):
    stranger = make_user("eve", "eve@example.com")
    stranger_headers = {"Authorization": f"Bearer {token_service.issue(stranger.id)}"}
    comment_id = _add(client, test_post.id, "keep me", auth_headers).json()["comment"]["id"]

    response = client.delete(
        f"/api/comments/{test_post.id}/{comment_id}",
        headers=stranger_headers,
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert db_session.get(Comment, comment_id).text == "keep me"


def test_delete_comment_on_wrong_post(client, db_session, test_post, test_user, auth_headers):
    comment_id = _add(client, test_post.id, "hello", auth_headers).json()["comment"]["id"]

    response = client.delete(f"/api/comments/{test_post.id + 1}/{comment_id}", headers=auth_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert db_session.get(Comment, comment_id) is not None
