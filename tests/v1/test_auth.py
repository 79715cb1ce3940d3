# tests/v1/test_auth.py
"""Tests for registration, password login and token refresh."""

from datetime import UTC, datetime, timedelta

from conftest import TEST_PASSWORD
from fastapi import status

from marketplace_api.models import User


def _register(client, **overrides):
    payload = {
        "username": "carol",
        "email": "carol@example.com",
        "password": "s3cret-pass",
        "phone": "5550001111",
    }
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


class TestRegister:
    def test_register_creates_user(self, client, db_session):
        response = _register(client)

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["message"] == "User registered successfully"
        assert body["user"]["email"] == "carol@example.com"
        assert body["user"]["role"] == "user"
        assert "password" not in body["user"]

        user = db_session.query(User).filter_by(email="carol@example.com").one()
        assert user.password_hash and user.password_hash != "s3cret-pass"

    def test_duplicate_email_is_rejected(self, client, db_session):
        assert _register(client).status_code == status.HTTP_201_CREATED

        response = _register(client, username="carol2")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Email already registered"
        assert db_session.query(User).count() == 1

    def test_distinct_emails_both_succeed(self, client, db_session):
        assert _register(client).status_code == status.HTTP_201_CREATED
        response = _register(client, username="dave", email="dave@example.com")
        assert response.status_code == status.HTTP_201_CREATED
        assert db_session.query(User).count() == 2

    def test_duplicate_username_is_rejected(self, client):
        _register(client)
        response = _register(client, email="other@example.com")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Username already taken"

    def test_invalid_phone_is_rejected(self, client, db_session):
        response = _register(client, phone="12345")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert db_session.query(User).count() == 0

    def test_phone_is_optional(self, client):
        response = _register(client, phone=None)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["user"]["phone"] is None


class TestLogin:
    def test_login_returns_token_and_role(self, client, test_user, token_service):
        response = client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["role"] == "user"
        assert body["token_type"] == "bearer"
        assert token_service.verify(body["token"]) == str(test_user.id)

    def test_unknown_email_is_not_found(self, client):
        response = client.post(
            "/api/auth/login",
            json={"email": "nobody@example.com", "password": "whatever"},
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_wrong_password_is_unauthorized(self, client, test_user):
        response = client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": "wrong"},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid credentials"

    def test_federated_only_account_cannot_use_password(self, client, db_session):
        user = User(username="gina", email="gina@example.com", google_id="g-1")
        db_session.add(user)
        db_session.commit()

        response = client.post(
            "/api/auth/login",
            json={"email": "gina@example.com", "password": ""},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestRefresh:
    def test_refresh_valid_token(self, client, test_user, token_service):
        token = token_service.issue(test_user.id)

        response = client.post("/api/auth/refresh", json={"token": token})

        assert response.status_code == status.HTTP_200_OK
        assert token_service.verify(response.json()["token"]) == str(test_user.id)

    def test_missing_token(self, client):
        response = client.post("/api/auth/refresh", json={})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Refresh token is required"

    def test_expired_token(self, client, test_user, token_service):
        token = token_service.issue(
            test_user.id,
            timedelta(minutes=1),
            now=datetime.now(UTC) - timedelta(hours=1),
        )
        response = client.post("/api/auth/refresh", json={"token": token})
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Refresh token has expired"

    def test_invalid_token(self, client):
        response = client.post("/api/auth/refresh", json={"token": "garbage"})
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Invalid refresh token"
