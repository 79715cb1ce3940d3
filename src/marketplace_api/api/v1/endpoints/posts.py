# src/marketplace_api/api/v1/endpoints/posts.py
"""Post-related endpoints: listings, likes and per-post comment views."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy import desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query as OrmQuery

from marketplace_api.api.v1.dependencies import (
    CurrentUserDep,
    MediaStoreDep,
    SessionDep,
    SettingsDep,
)
from marketplace_api.models import Comment, Post, User
from marketplace_api.schemas.comment import CommentListResponse
from marketplace_api.schemas.common import FieldUpdateRequest, MessageResponse
from marketplace_api.schemas.post import (
    CommentCountResponse,
    LikeResponse,
    PostAuthorResponse,
    PostListResponse,
    PostMessageResponse,
    PostOwnerResponse,
    PostResponse,
)
from marketplace_api.services.field_update import (
    FieldPermissionError,
    FieldValidationError,
    RecordNotFoundError,
    patch_post_field,
)
from marketplace_api.services.media import MediaError, MediaStore
from marketplace_api.services.presenters import (
    to_comment_response,
    to_post_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


class PostFilters:
    """Pagination and search parameters shared by the listing endpoints."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="1-based page number"),
        limit: int = Query(10, ge=1, le=100, description="Posts per page"),
        query: str | None = Query(None, description="Case-insensitive title search"),
        min_price: float | None = Query(
            None, ge=0, allow_inf_nan=False, description="Minimum price"
        ),
        max_price: float | None = Query(
            None, ge=0, allow_inf_nan=False, description="Maximum price"
        ),
        category: str | None = Query(None, description="Exact category"),
    ) -> None:
        self.page = page
        self.limit = limit
        self.query = query
        self.min_price = min_price
        self.max_price = max_price
        self.category = category

    def apply(self, query: OrmQuery[Post]) -> OrmQuery[Post]:
        """Return `query` narrowed by the search filters."""
        if self.query:
            query = query.filter(
                func.lower(Post.title).contains(self.query.lower(), autoescape=True)
            )
        if self.min_price is not None:
            query = query.filter(Post.price >= self.min_price)
        if self.max_price is not None:
            query = query.filter(Post.price <= self.max_price)
        if self.category:
            query = query.filter(Post.category == self.category)
        return query

    def page_of(self, query: OrmQuery[Post]) -> tuple[int, list[Post]]:
        """Return the total match count and the requested page, newest first."""
        total = query.order_by(None).count()
        posts = (
            query.order_by(desc(Post.created_at), desc(Post.id))
            .offset((self.page - 1) * self.limit)
            .limit(self.limit)
            .all()
        )
        return total, posts


PostFiltersDep = Annotated[PostFilters, Depends()]


def _get_post_or_404(db: SessionDep, post_id: int) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )
    return post


def _ensure_can_modify(post: Post, user: User, action: str) -> None:
    if post.author_id != user.id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unauthorized to {action} this post",
        )


async def _store_image(media: MediaStore, owner_id: int, image: UploadFile | None) -> str | None:
    if image is None or not image.filename:
        return None
    try:
        return await media.save("post", owner_id, image)
    except MediaError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err


def _listing(
    posts: list[Post],
    total: int,
    media: MediaStore,
    viewer: User | None,
) -> PostListResponse:
    return PostListResponse(
        total=total,
        posts=[to_post_response(post, media, viewer=viewer) for post in posts],
    )


@router.post(
    "/",
    response_model=PostMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(
    title: Annotated[str, Form(min_length=1, max_length=200)],
    price: Annotated[float, Form(ge=0, allow_inf_nan=False)],
    category: Annotated[str, Form(min_length=1, max_length=100)],
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
    description: Annotated[str | None, Form()] = None,
    image: Annotated[UploadFile | None, File()] = None,
) -> PostMessageResponse:
    """Create a listing, optionally with an image.

    Form validation runs before anything is written, so a request missing a
    required field leaves neither a record nor a stored file behind.
    """
    title = title.strip()
    category = category.strip()
    if not title or not category:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title and category are required",
        )

    image_name = await _store_image(media, current_user.id, image)

    post = Post(
        author_id=current_user.id,
        title=title,
        description=(description or "").strip() or None,
        category=category,
        price=price,
        image=image_name,
    )
    db.add(post)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        # Do not leave an orphaned upload behind.
        media.delete("post", image_name)
        raise
    db.refresh(post)
    logger.info("User %s created post %s", current_user.id, post.id)

    return PostMessageResponse(
        message="Post created",
        post=to_post_response(post, media, viewer=current_user),
    )


@router.get("/", response_model=PostListResponse)
async def list_posts(
    filters: PostFiltersDep,
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
    liked_only: Annotated[bool, Query(description="Only posts the caller likes")] = False,
) -> PostListResponse:
    """List posts newest first with search, price range and category filters."""
    query = filters.apply(db.query(Post))
    if liked_only:
        query = query.filter(Post.likers.any(User.id == current_user.id))
    total, posts = filters.page_of(query)
    return _listing(posts, total, media, current_user)


@router.get("/my", response_model=PostListResponse)
async def list_my_posts(
    filters: PostFiltersDep,
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
) -> PostListResponse:
    """List the caller's own posts."""
    query = filters.apply(db.query(Post).filter(Post.author_id == current_user.id))
    total, posts = filters.page_of(query)
    return _listing(posts, total, media, current_user)


@router.get("/notmy", response_model=PostListResponse)
async def list_other_posts(
    filters: PostFiltersDep,
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
) -> PostListResponse:
    """List posts written by anyone but the caller."""
    query = filters.apply(
        db.query(Post).filter(
            (Post.author_id != current_user.id) | Post.author_id.is_(None)
        )
    )
    total, posts = filters.page_of(query)
    return _listing(posts, total, media, current_user)


@router.get("/landing", response_model=PostListResponse)
async def list_landing_posts(
    filters: PostFiltersDep,
    db: SessionDep,
    media: MediaStoreDep,
) -> PostListResponse:
    """Public listing for the landing page; carries no like state."""
    total, posts = filters.page_of(filters.apply(db.query(Post)))
    return _listing(posts, total, media, None)


@router.patch("/update", response_model=PostMessageResponse)
async def update_post_field(
    payload: FieldUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
    settings: SettingsDep,
) -> PostMessageResponse:
    """Set a single allow-listed field on a post."""
    try:
        post = patch_post_field(
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

    return PostMessageResponse(
        message="Post updated successfully.",
        post=to_post_response(post, media, viewer=current_user),
    )


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: SessionDep, media: MediaStoreDep) -> PostResponse:
    """Get a specific post with its image and author inlined."""
    post = _get_post_or_404(db, post_id)
    return to_post_response(post, media)


@router.put("/{post_id}", response_model=PostMessageResponse)
async def update_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
    title: Annotated[str | None, Form(max_length=200)] = None,
    price: Annotated[float | None, Form(ge=0, allow_inf_nan=False)] = None,
    category: Annotated[str | None, Form(max_length=100)] = None,
    description: Annotated[str | None, Form()] = None,
    image: Annotated[UploadFile | None, File()] = None,
) -> PostMessageResponse:
    """Partially update a post; only its author or an admin may do so."""
    post = _get_post_or_404(db, post_id)
    _ensure_can_modify(post, current_user, "update")

    if title and title.strip():
        post.title = title.strip()
    if price is not None:
        post.price = price
    if category and category.strip():
        post.category = category.strip()
    if description and description.strip():
        post.description = description.strip()

    # Files are named after the listing's author, even when an admin uploads.
    owner_id = post.author_id if post.author_id is not None else current_user.id
    new_image = await _store_image(media, owner_id, image)
    previous_image = post.image
    if new_image is not None:
        post.image = new_image

    db.commit()
    db.refresh(post)
    if new_image is not None:
        media.delete("post", previous_image)

    return PostMessageResponse(
        message="Post updated",
        post=to_post_response(post, media, viewer=current_user),
    )


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    media: MediaStoreDep,
) -> MessageResponse:
    """Delete a post together with its comments, likes and stored image."""
    post = _get_post_or_404(db, post_id)
    _ensure_can_modify(post, current_user, "delete")

    image_name = post.image
    db.delete(post)
    db.commit()
    media.delete("post", image_name)
    logger.info("User %s deleted post %s", current_user.id, post_id)

    return MessageResponse(message="Post deleted successfully")


@router.get("/{post_id}/author", response_model=PostAuthorResponse)
async def get_post_author(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostAuthorResponse:
    """Return the author's name and phone so buyers can get in touch."""
    post = db.get(Post, post_id)
    if post is None or post.author is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post or author not found",
        )
    return PostAuthorResponse(author_name=post.author.username, author_phone=post.author.phone)


@router.post("/{post_id}/like", response_model=LikeResponse)
async def like_post(post_id: int, current_user: CurrentUserDep, db: SessionDep) -> LikeResponse:
    """Like a post; liking an already-liked post changes nothing."""
    post = _get_post_or_404(db, post_id)
    if post not in current_user.liked_posts:
        current_user.liked_posts.append(post)
        db.commit()
    return LikeResponse(
        message="Post liked",
        liked_posts=[liked.id for liked in current_user.liked_posts],
    )


@router.delete("/{post_id}/like", response_model=LikeResponse)
async def unlike_post(post_id: int, current_user: CurrentUserDep, db: SessionDep) -> LikeResponse:
    """Remove a like; unliking a post that was never liked is a no-op."""
    post = _get_post_or_404(db, post_id)
    if post in current_user.liked_posts:
        current_user.liked_posts.remove(post)
        db.commit()
    return LikeResponse(
        message="Post unliked",
        liked_posts=[liked.id for liked in current_user.liked_posts],
    )


@router.get("/{post_id}/comments/count", response_model=CommentCountResponse)
async def get_comment_count(post_id: int, db: SessionDep) -> CommentCountResponse:
    """Return how many comments a post has."""
    _get_post_or_404(db, post_id)
    count = db.query(func.count(Comment.id)).filter(Comment.post_id == post_id).scalar() or 0
    return CommentCountResponse(count=int(count))


@router.get("/{post_id}/comments", response_model=CommentListResponse)
async def get_post_comments(
    post_id: int,
    db: SessionDep,
    media: MediaStoreDep,
) -> CommentListResponse:
    """Return a post's comments in the order they were written."""
    post = _get_post_or_404(db, post_id)
    return CommentListResponse(
        comments=[to_comment_response(comment, media) for comment in post.comments]
    )


@router.get("/{post_id}/owner", response_model=PostOwnerResponse)
async def get_post_owner(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostOwnerResponse:
    """Return the id of the post's owner."""
    post = _get_post_or_404(db, post_id)
    return PostOwnerResponse(owner_id=post.author_id)
