# src/marketplace_api/api/v1/endpoints/auth.py
"""Authentication endpoints: password login, token refresh and Google login."""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import IntegrityError

from marketplace_api.api.v1.dependencies import (
    MediaStoreDep,
    SessionDep,
    SettingsDep,
    TokenServiceDep,
)
from marketplace_api.core.security import hash_password, verify_password
from marketplace_api.models import User
from marketplace_api.schemas.user import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
)
from marketplace_api.services.oauth import (
    GoogleOAuthClient,
    OAuthError,
    get_oauth_client,
    link_or_create_user,
)
from marketplace_api.services.presenters import to_user_response
from marketplace_api.services.tokens import TokenExpiredError, TokenInvalidError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

OAUTH_STATE_COOKIE = "oauth_state"
OAUTH_TOKEN_COOKIE = "oauth_token"
OAUTH_COOKIE_PATH = "/api/auth"
OAUTH_STATE_MAX_AGE = 600

OAuthClientDep = Annotated[GoogleOAuthClient, Depends(get_oauth_client)]


@router.post(
    "/register",
    summary="Register a password-based account",
    status_code=status.HTTP_201_CREATED,
    response_model=RegisterResponse,
)
async def register_user(
    payload: RegisterRequest,
    db: SessionDep,
    media: MediaStoreDep,
) -> RegisterResponse:
    """Create an account; email and username must both be unused."""
    if db.query(User).filter(User.email == payload.email).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )
    if db.query(User).filter(User.username == payload.username).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already taken",
        )

    user = User(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        phone=payload.phone,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email or username already registered",
        ) from err
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    return RegisterResponse(user=to_user_response(user, media))


@router.post(
    "/login",
    summary="Authenticate with email and password",
    status_code=status.HTTP_200_OK,
    response_model=LoginResponse,
)
async def login_user(
    payload: LoginRequest,
    db: SessionDep,
    tokens: TokenServiceDep,
) -> LoginResponse:
    """Exchange credentials for an access token."""
    user = db.query(User).filter(User.email == payload.email).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    if not verify_password(payload.password, user.password_hash):
        logger.info("Rejected login for user %s", user.id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    return LoginResponse(token=tokens.issue(user.id), role=user.role)


@router.post(
    "/refresh",
    summary="Reissue an access token from a still-valid one",
    response_model=RefreshResponse,
)
async def refresh_token(payload: RefreshRequest, tokens: TokenServiceDep) -> RefreshResponse:
    """Issue a new token for the same subject; the old token is not revoked."""
    if not payload.token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Refresh token is required",
        )
    try:
        new_token = tokens.refresh(payload.token)
    except TokenExpiredError as err:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Refresh token has expired",
        ) from err
    except TokenInvalidError as err:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid refresh token",
        ) from err

    return RefreshResponse(token=new_token)


@router.get("/google", summary="Start Google login")
async def google_login(oauth: OAuthClientDep, settings: SettingsDep) -> RedirectResponse:
    """Redirect the browser to Google's consent screen."""
    if not oauth.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google login is not configured",
        )

    state = secrets.token_urlsafe(16)
    response = RedirectResponse(oauth.authorization_url(state))
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path=OAUTH_COOKIE_PATH,
    )
    return response


@router.get("/google/callback", summary="Complete Google login")
async def google_callback(
    db: SessionDep,
    oauth: OAuthClientDep,
    tokens: TokenServiceDep,
    settings: SettingsDep,
    code: Annotated[str | None, Query()] = None,
    state: Annotated[str | None, Query()] = None,
    expected_state: Annotated[str | None, Cookie(alias=OAUTH_STATE_COOKIE)] = None,
) -> RedirectResponse:
    """Finish the authorization-code flow and hand the token to the frontend.

    The token travels in a short-lived httpOnly cookie scoped to the auth
    routes instead of a URL query parameter, so it never lands in browser
    history, referrer headers or access logs. The frontend collects it with
    `POST /auth/oauth/session`.
    """
    failure = RedirectResponse(f"{settings.frontend_url}/login?error=unauthorized")
    failure.delete_cookie(OAUTH_STATE_COOKIE, path=OAUTH_COOKIE_PATH)

    if not code or not state or not expected_state:
        return failure
    if not secrets.compare_digest(state, expected_state):
        logger.warning("Google callback state mismatch")
        return failure

    try:
        profile = await oauth.fetch_profile(code)
        user = link_or_create_user(db, profile)
    except OAuthError as exc:
        logger.warning("Google login failed: %s", exc)
        return failure

    token = tokens.issue(user.id, timedelta(days=settings.federated_token_expire_days))
    response = RedirectResponse(f"{settings.frontend_url}/oauth-success")
    response.delete_cookie(OAUTH_STATE_COOKIE, path=OAUTH_COOKIE_PATH)
    response.set_cookie(
        OAUTH_TOKEN_COOKIE,
        token,
        max_age=settings.oauth_cookie_max_age_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path=OAUTH_COOKIE_PATH,
    )
    logger.info("Google login succeeded for user %s", user.id)
    return response


@router.post(
    "/oauth/session",
    summary="Collect the token issued by Google login",
    response_model=LoginResponse,
)
async def oauth_session(
    response: Response,
    db: SessionDep,
    tokens: TokenServiceDep,
    oauth_token: Annotated[str | None, Cookie(alias=OAUTH_TOKEN_COOKIE)] = None,
) -> LoginResponse:
    """Return the federated-login token from its cookie and clear the cookie."""
    if not oauth_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No pending federated login",
        )

    try:
        subject = tokens.verify(oauth_token)
    except (TokenExpiredError, TokenInvalidError) as err:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid federated login token",
        ) from err
    if not subject.isdigit():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid federated login token",
        )

    user = db.get(User, int(subject))
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    response.delete_cookie(OAUTH_TOKEN_COOKIE, path=OAUTH_COOKIE_PATH)
    return LoginResponse(token=oauth_token, role=user.role)
