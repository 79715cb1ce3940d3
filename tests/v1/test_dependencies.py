# tests/v1/test_dependencies.py
"""Tests for the authentication gate shared by protected endpoints."""

from datetime import UTC, datetime, timedelta

from fastapi import status


def test_missing_token_is_unauthenticated(client):
    response = client.get("/api/users/")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Not authenticated"


def test_expired_token_is_forbidden(client, test_user, token_service):
    token = token_service.issue(
        test_user.id,
        timedelta(minutes=5),
        now=datetime.now(UTC) - timedelta(hours=1),
    )
    response = client.get("/api/users/", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Token has expired"


def test_malformed_token_is_forbidden(client):
    response = client.get("/api/users/", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Invalid token"


def test_non_numeric_subject_is_forbidden(client, token_service):
    token = token_service.issue("not-a-user-id")
    response = client.get("/api/users/", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_token_for_deleted_user_is_not_found(client, token_service):
    token = token_service.issue(9999)
    response = client.get("/api/users/", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "User not found"


def test_valid_token_resolves_user(client, test_user, auth_headers):
    response = client.get("/api/users/", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == test_user.id


def test_admin_only_route_rejects_regular_user(client, other_user, auth_headers):
    response = client.delete(f"/api/users/delete-user/{other_user.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN
