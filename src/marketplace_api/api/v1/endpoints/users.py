# src/marketplace_api/api/v1/endpoints/users.py
"""User account endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy import desc, func, or_

from marketplace_api.api.v1.dependencies import (
    CurrentAdminDep,
    CurrentUserDep,
    MediaStoreDep,
    SessionDep,
    SettingsDep,
)
from marketplace_api.models import Post, User
from marketplace_api.schemas.common import FieldUpdateRequest, MessageResponse
from marketplace_api.schemas.post import PostListResponse
from marketplace_api.schemas.user import (
    ProfileResponse,
    UserListResponse,
    UserMessageResponse,
    UserResponse,
    validate_phone,
)
from marketplace_api.services.field_update import (
    FieldPermissionError,
    FieldValidationError,
    RecordNotFoundError,
    patch_user_field,
)
from marketplace_api.services.media import MediaError, MediaStore
from marketplace_api.services.presenters import to_post_response, to_user_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


async def _replace_profile_image(
    user: User,
    media: MediaStore,
    upload: UploadFile,
) -> str | None:
    """Store `upload` as the user's picture and return the superseded reference."""
    try:
        name = await media.save("user", user.id, upload)
    except MediaError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    previous = user.profile_image
    user.profile_image = name
    return previous


@router.get("/", response_model=UserResponse)
async def get_current_user_details(
    current_user: CurrentUserDep,
    media: MediaStoreDep,
) -> UserResponse:
    """Return the caller's account with the profile image inlined."""
    return to_user_response(current_user, media)


@router.put("/", response_model=UserMessageResponse)
async def update_current_user(
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
    username: Annotated[str | None, Form(max_length=100)] = None,
    phone: Annotated[str | None, Form()] = None,
    profile_image: Annotated[UploadFile | None, File()] = None,
) -> UserMessageResponse:
    """Update the caller's username, phone number or profile image."""
    if username is not None and username.strip():
        username = username.strip()
        taken = (
            db.query(User)
            .filter(User.username == username, User.id != current_user.id)
            .first()
        )
        if taken is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username already taken",
            )
        current_user.username = username

    if phone is not None and phone.strip():
        try:
            current_user.phone = validate_phone(phone)
        except ValueError as err:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(err),
            ) from err

    previous_image = None
    replaced = False
    if profile_image is not None and profile_image.filename:
        previous_image = await _replace_profile_image(current_user, media, profile_image)
        replaced = True

    db.commit()
    db.refresh(current_user)
    if replaced:
        media.delete("user", previous_image)

    return UserMessageResponse(
        message="User updated successfully",
        user=to_user_response(current_user, media),
    )


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: CurrentUserDep) -> ProfileResponse:
    """Return the caller's contact details."""
    return ProfileResponse.model_validate(current_user)


@router.get("/posts", response_model=PostListResponse)
async def get_user_posts(
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
) -> PostListResponse:
    """Return every post the caller has written, newest first."""
    posts = (
        db.query(Post)
        .filter(Post.author_id == current_user.id)
        .order_by(desc(Post.created_at), desc(Post.id))
        .all()
    )
    return PostListResponse(
        total=len(posts),
        posts=[to_post_response(post, media, viewer=current_user) for post in posts],
    )


@router.get("/liked-posts", response_model=PostListResponse)
async def get_liked_posts(
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> PostListResponse:
    """Return a page of the posts the caller has liked."""
    query = db.query(Post).filter(Post.likers.any(User.id == current_user.id))
    total = query.count()
    posts = (
        query.order_by(desc(Post.created_at), desc(Post.id))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return PostListResponse(
        total=total,
        posts=[to_post_response(post, media, viewer=current_user) for post in posts],
    )


@router.get("/all-users", response_model=UserListResponse)
async def list_users(
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    query: Annotated[str | None, Query(description="Match on username or email")] = None,
) -> UserListResponse:
    """Search accounts by a case-insensitive substring of username or email."""
    users_query = db.query(User)
    if query:
        needle = query.strip().lower()
        users_query = users_query.filter(
            or_(
                func.lower(User.username).contains(needle, autoescape=True),
                func.lower(User.email).contains(needle, autoescape=True),
            )
        )
    total = users_query.count()
    users = users_query.order_by(User.id).offset((page - 1) * limit).limit(limit).all()
    return UserListResponse(
        total=total,
        users=[to_user_response(user, media) for user in users],
    )


@router.put("/upload-image", response_model=UserMessageResponse)
async def upload_profile_image(
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
    profile_image: Annotated[UploadFile | None, File()] = None,
) -> UserMessageResponse:
    """Replace the caller's profile image."""
    if profile_image is None or not profile_image.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded",
        )

    previous_image = await _replace_profile_image(current_user, media, profile_image)
    db.commit()
    db.refresh(current_user)
    media.delete("user", previous_image)

    return UserMessageResponse(
        message="Profile image updated successfully",
        user=to_user_response(current_user, media),
    )


@router.patch("/update", response_model=UserMessageResponse)
async def update_user_field(
    payload: FieldUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
    settings: SettingsDep,
) -> UserMessageResponse:
    """Set a single allow-listed field on a user account."""
    try:
        user = patch_user_field(
            db,
            current_user,
            payload,
            media,
            enforce_ownership=settings.field_patch_enforce_ownership,
        )
    except FieldValidationError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except RecordNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    except FieldPermissionError as err:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(err)) from err

    return UserMessageResponse(
        message="User updated successfully.",
        user=to_user_response(user, media),
    )


@router.delete("/delete-user/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    admin: CurrentAdminDep,
    db: SessionDep,
    media: MediaStoreDep,
) -> MessageResponse:
    """Delete an account. Its posts and comments remain, unattributed."""
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot delete your own account",
        )

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    image_name = user.profile_image
    db.delete(user)
    db.commit()
    media.delete("user", image_name)
    logger.info("Admin %s deleted user %s", admin.id, user_id)

    return MessageResponse(message="User deleted successfully")
