"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from marketplace_api.core.settings import Settings, get_settings
from marketplace_api.db.session import get_db
from marketplace_api.models import User
from marketplace_api.services.media import MediaStore, get_media_store
from marketplace_api.services.tokens import (
    TokenExpiredError,
    TokenInvalidError,
    TokenService,
    get_token_service,
)

# HTTP Bearer scheme; missing credentials are reported by get_current_user itself
bearer_scheme = HTTPBearer(auto_error=False)

# Type aliases for injected collaborators
SessionDep = Annotated[Session, Depends(get_db)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
MediaStoreDep = Annotated[MediaStore, Depends(get_media_store)]


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    tokens: TokenServiceDep,
) -> int:
    """Extract and verify the bearer token, returning the subject user id.

    Raises:
        HTTPException: 401 when no token is presented, 403 when it is expired
            or otherwise invalid.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        subject = tokens.verify(credentials.credentials)
    except TokenExpiredError as err:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token has expired",
        ) from err
    except TokenInvalidError as err:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid token",
        ) from err

    try:
        return int(subject)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid token",
        ) from err


def get_current_user(
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: SessionDep,
) -> User:
    """Resolve the verified subject to a User record.

    Raises:
        HTTPException: 404 if the account no longer exists.
    """
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


def get_current_admin(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    """Require the authenticated user to hold the admin role."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to perform this action",
        )
    return current_user


# Type aliases for identity dependencies
CurrentUserDep = Annotated[User, Depends(get_current_user)]
CurrentAdminDep = Annotated[User, Depends(get_current_admin)]
