# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from marketplace_api.core.security import hash_password
from marketplace_api.db.session import Base, build_engine
from marketplace_api.db.session import get_db as app_get_session
from marketplace_api.main import app as fastapi_app
from marketplace_api.models import ROLE_ADMIN, Post, User
from marketplace_api.services.media import MediaStore, get_media_store
from marketplace_api.services.tokens import TokenService, get_token_service

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct horse battery staple"

# bcrypt is slow on purpose; hash the shared fixture password once per run.
_TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\nIDATx\x9cc\x00\x01"
    b"\x00\x00\x05\x00\x01\r\n-\xb4\x00\x00\x00\x00IEND\xaeB`\x82"
)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = build_engine(TEST_DB_URL, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def media_store(tmp_path: Path) -> MediaStore:
    """Return a media store rooted in a per-test temporary directory."""
    return MediaStore(tmp_path / "uploads")


@pytest.fixture(autouse=True)
def override_media_dependency(app: FastAPI, media_store: MediaStore) -> Iterator[None]:
    app.dependency_overrides[get_media_store] = lambda: media_store
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_media_store, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def token_service() -> TokenService:
    """Return the token service the application verifies tokens with."""
    return get_token_service()


def _create_user(
    db: Session,
    username: str,
    email: str,
    *,
    phone: str | None = None,
    role: str | None = None,
) -> User:
    user = User(
        username=username,
        email=email,
        password_hash=_TEST_PASSWORD_HASH,
        phone=phone,
    )
    if role is not None:
        user.role = role
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists extra users with the shared password."""

    def _make(username: str, email: str, **kwargs: Any) -> User:
        return _create_user(db_session, username, email, **kwargs)

    return _make


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return a persisted test user."""
    return _create_user(db_session, "alice", "alice@example.com", phone="5551234567")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second persisted user."""
    return _create_user(db_session, "bob", "bob@example.com", phone="5559876543")


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    """Create and return an administrator."""
    return _create_user(db_session, "root", "root@example.com", role=ROLE_ADMIN)


@pytest.fixture()
def auth_headers(test_user: User, token_service: TokenService) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return {"Authorization": f"Bearer {token_service.issue(test_user.id)}"}


@pytest.fixture()
def other_auth_headers(other_user: User, token_service: TokenService) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return {"Authorization": f"Bearer {token_service.issue(other_user.id)}"}


@pytest.fixture()
def admin_auth_headers(admin_user: User, token_service: TokenService) -> dict[str, str]:
    """Return authorization headers for the administrator."""
    return {"Authorization": f"Bearer {token_service.issue(admin_user.id)}"}


@pytest.fixture()
def test_post(db_session: Session, test_user: User) -> Post:
    """Create a baseline listing owned by the primary test user."""
    post = Post(
        author_id=test_user.id,
        title="Vintage bicycle",
        description="Steel frame, recently serviced",
        category="sports",
        price=120.0,
    )
    db_session.add(post)
    db_session.commit()
    db_session.refresh(post)
    return post
