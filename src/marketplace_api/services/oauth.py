"""Google federated login: authorization redirect, code exchange and account linkage."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx
from sqlalchemy.orm import Session

from marketplace_api.core.settings import settings
from marketplace_api.models import User

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = "openid email profile"


class OAuthError(RuntimeError):
    """Raised when the identity provider flow cannot be completed."""


class OAuthDisabledError(OAuthError):
    """Raised when Google credentials are not configured."""


@dataclass(frozen=True)
class GoogleProfile:
    """Identity attributes returned by Google's userinfo endpoint."""

    subject: str
    email: str | None
    name: str | None
    picture: str | None


class GoogleOAuthClient:
    """Minimal OAuth 2.0 authorization-code client for Google."""

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        redirect_uri: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, state: str) -> str:
        """Return the consent-screen URL the browser is redirected to."""
        if not self.enabled:
            raise OAuthDisabledError("Google login is not configured")
        query = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "response_type": "code",
                "scope": GOOGLE_SCOPES,
                "state": state,
                "access_type": "online",
                "prompt": "select_account",
            }
        )
        return f"{GOOGLE_AUTH_URL}?{query}"

    async def fetch_profile(self, code: str) -> GoogleProfile:
        """Exchange an authorization code and return the user's profile.

        Raises:
            OAuthError: If either upstream call fails or returns no subject.
        """
        if not self.enabled:
            raise OAuthDisabledError("Google login is not configured")

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            transport=self._transport,
        ) as client:
            try:
                token_response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": self.redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                token_response.raise_for_status()
                access_token = token_response.json().get("access_token")
                if not access_token:
                    raise OAuthError("Token response did not include an access token")

                profile_response = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                profile_response.raise_for_status()
                payload = profile_response.json()
            except (httpx.HTTPError, ValueError) as exc:
                raise OAuthError(f"Google login failed: {exc}") from exc

        subject = payload.get("sub")
        if not subject:
            raise OAuthError("Google profile did not include a subject")
        return GoogleProfile(
            subject=str(subject),
            email=payload.get("email"),
            name=payload.get("name"),
            picture=payload.get("picture"),
        )


def _unique_username(db: Session, base: str) -> str:
    candidate = base.strip()[:90] or "user"
    while db.query(User).filter(User.username == candidate).first() is not None:
        candidate = f"{base.strip()[:90] or 'user'}-{secrets.token_hex(3)}"
    return candidate


def link_or_create_user(db: Session, profile: GoogleProfile) -> User:
    """Return the local account for `profile`, creating or linking it as needed.

    Accounts are matched on the Google subject first, then on email, in which
    case the existing password account is linked to the Google identity.
    """
    user = db.query(User).filter(User.google_id == profile.subject).first()
    if user is not None:
        return user

    if not profile.email:
        raise OAuthError("Google profile did not include an email address")

    user = db.query(User).filter(User.email == profile.email).first()
    if user is not None:
        user.google_id = profile.subject
        if not user.profile_image and profile.picture:
            user.profile_image = profile.picture
        db.commit()
        db.refresh(user)
        logger.info("Linked Google identity to user %s", user.id)
        return user

    base = profile.name or profile.email.split("@", 1)[0]
    user = User(
        google_id=profile.subject,
        username=_unique_username(db, base),
        email=profile.email,
        profile_image=profile.picture,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s from Google login", user.id)
    return user


def get_oauth_client() -> GoogleOAuthClient:
    """Return a Google OAuth client built from the global settings."""
    return GoogleOAuthClient(
        settings.google_client_id,
        settings.google_client_secret,
        settings.google_redirect_uri,
        timeout_seconds=settings.oauth_timeout_seconds,
    )
