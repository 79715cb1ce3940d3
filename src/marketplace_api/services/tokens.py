"""Issuance and verification of signed, time-limited access tokens."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from marketplace_api.core.settings import settings

logger = logging.getLogger(__name__)


class TokenError(ValueError):
    """Base exception for token verification failures."""


class TokenExpiredError(TokenError):
    """Raised when a token's expiry has been reached."""


class TokenInvalidError(TokenError):
    """Raised for bad signatures, malformed tokens or missing claims."""


class TokenService:
    """Stateless JWT issuer and verifier.

    Tokens carry the subject user id (`sub`), the issue time (`iat`) and the
    expiry (`exp`). Nothing is persisted, so a refreshed token does not revoke
    the one it was derived from; both stay valid until their own expiry.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=1),
    ) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_ttl = access_ttl

    def issue(
        self,
        subject_id: int | str,
        ttl: timedelta | None = None,
        *,
        now: datetime | None = None,
    ) -> str:
        """Return a signed token for `subject_id` expiring `ttl` from `now`."""
        issued_at = now or datetime.now(UTC)
        expires_at = issued_at + (ttl if ttl is not None else self.access_ttl)
        claims = {
            "sub": str(subject_id),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        encoded: str = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        return encoded

    def verify(self, token: str, *, now: datetime | None = None) -> str:
        """Return the subject id embedded in `token`.

        Raises:
            TokenExpiredError: If the expiry is at or before `now`.
            TokenInvalidError: If the signature, structure or claims are bad.
        """
        if not token:
            raise TokenInvalidError("Token is empty")
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as err:
            logger.debug("Rejected token: %s", err)
            raise TokenInvalidError(str(err)) from err

        subject = payload.get("sub")
        if not subject or not isinstance(subject, str):
            raise TokenInvalidError("Token is missing the subject claim")

        expires = payload.get("exp")
        if not isinstance(expires, int | float):
            raise TokenInvalidError("Token is missing the expiry claim")

        current = (now or datetime.now(UTC)).timestamp()
        if current >= expires:
            raise TokenExpiredError("Token has expired")
        return subject

    def refresh(self, token: str, *, now: datetime | None = None) -> str:
        """Verify `token` and issue a fresh access token for the same subject."""
        subject = self.verify(token, now=now)
        return self.issue(subject, now=now)


def build_token_service() -> TokenService:
    """Build a token service from the global settings."""
    return TokenService(
        secret_key=settings.secret_key,
        algorithm=settings.jwt_algorithm,
        access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
    )


class _TokenServiceSingleton:
    """Singleton wrapper for TokenService."""

    _instance: TokenService | None = None

    @classmethod
    def get_instance(cls) -> TokenService:
        """Get or create the singleton TokenService instance."""
        if cls._instance is None:
            cls._instance = build_token_service()
        return cls._instance


def get_token_service() -> TokenService:
    """Return the shared token service."""
    return _TokenServiceSingleton.get_instance()
