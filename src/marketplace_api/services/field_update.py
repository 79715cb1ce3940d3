"""Single-field patches for users and posts.

Rather than setting arbitrary attributes by name, every patchable field is
listed in an allow-list that maps the field name to a setter. A setter bundles
the field's own validation, how the value is applied (including removal of a
superseded image file) and who may change it.

The read-modify-write here is not atomic: two concurrent patches to the same
record resolve as last-write-wins.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from marketplace_api.models import ROLE_ADMIN, ROLE_USER, Post, User
from marketplace_api.schemas.common import FieldUpdateRequest
from marketplace_api.schemas.user import PHONE_ERROR, PHONE_PATTERN
from marketplace_api.services.media import MediaKind, MediaStore, is_external_url

logger = logging.getLogger(__name__)

_EMAIL_ADAPTER: TypeAdapter[str] = TypeAdapter(EmailStr)


class FieldUpdateError(ValueError):
    """Base exception for rejected field patches."""


class FieldValidationError(FieldUpdateError):
    """Raised when the request or the value is invalid."""


class RecordNotFoundError(FieldUpdateError):
    """Raised when the target record does not exist."""


class FieldPermissionError(FieldUpdateError):
    """Raised when the caller may not change the field."""


Validator = Callable[[Any], Any]
Applier = Callable[[Session, Any, Any, MediaStore], None]


@dataclass(frozen=True)
class FieldSetter:
    """Typed setter for one allow-listed field."""

    validate: Validator
    apply: Applier
    admin_only: bool = False


def _required_text(label: str, max_length: int) -> Validator:
    def validate(value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise FieldValidationError(f"{label} must be a non-empty string.")
        if len(value) > max_length:
            raise FieldValidationError(f"{label} must be at most {max_length} characters.")
        return value

    return validate


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise FieldValidationError("Value must be a string.")
    return value or None


def _phone(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or not PHONE_PATTERN.match(value):
        raise FieldValidationError(PHONE_ERROR)
    return value


def _email(value: Any) -> str:
    try:
        return _EMAIL_ADAPTER.validate_python(value)
    except ValidationError as err:
        raise FieldValidationError("Invalid email address.") from err


def _price(value: Any) -> float:
    if isinstance(value, bool):
        raise FieldValidationError("Price must be a number.")
    try:
        price = float(value)
    except (TypeError, ValueError) as err:
        raise FieldValidationError("Price must be a number.") from err
    if not math.isfinite(price):
        raise FieldValidationError("Price must be a finite number.")
    if price < 0:
        raise FieldValidationError("Price must not be negative.")
    return price


def _role(value: Any) -> str:
    if value not in (ROLE_USER, ROLE_ADMIN):
        raise FieldValidationError(f"Role must be '{ROLE_USER}' or '{ROLE_ADMIN}'.")
    return str(value)


def _image_reference(allow_urls: bool) -> Validator:
    def validate(value: Any) -> str | None:
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            raise FieldValidationError("Image reference must be a string.")
        if allow_urls and is_external_url(value):
            return value
        if "/" in value or "\\" in value or value in {".", ".."}:
            raise FieldValidationError("Image reference must be a stored file name.")
        return value

    return validate


def _set(attribute: str) -> Applier:
    def apply(db: Session, record: Any, value: Any, media: MediaStore) -> None:
        setattr(record, attribute, value)

    return apply


def _set_unique(model: type[User], attribute: str, message: str) -> Applier:
    def apply(db: Session, record: Any, value: Any, media: MediaStore) -> None:
        column = getattr(model, attribute)
        clash = db.query(model).filter(column == value, model.id != record.id).first()
        if clash is not None:
            raise FieldValidationError(message)
        setattr(record, attribute, value)

    return apply


def _replace_image(
    kind: MediaKind, attribute: str, owner_of: Callable[[Any], int | None]
) -> Applier:
    def apply(db: Session, record: Any, value: Any, media: MediaStore) -> None:
        if value and not is_external_url(value):
            # Only files uploaded for this record's owner may be referenced.
            owned = value.startswith(f"{owner_of(record)}-")
            if not owned or not media.path_for(kind, value).is_file():
                raise FieldValidationError(
                    "Image reference must be one of the owner's stored images."
                )
        previous = getattr(record, attribute)
        if previous and previous != value:
            media.delete(kind, previous)
        setattr(record, attribute, value)

    return apply


USER_FIELDS: dict[str, FieldSetter] = {
    "username": FieldSetter(
        _required_text("Username", 100),
        _set_unique(User, "username", "Username is already taken."),
    ),
    "email": FieldSetter(
        _email,
        _set_unique(User, "email", "Email is already registered."),
    ),
    "phone": FieldSetter(_phone, _set("phone")),
    "profile_image": FieldSetter(
        _image_reference(allow_urls=True),
        _replace_image("user", "profile_image", lambda user: user.id),
    ),
    "role": FieldSetter(_role, _set("role"), admin_only=True),
}

POST_FIELDS: dict[str, FieldSetter] = {
    "title": FieldSetter(_required_text("Title", 200), _set("title")),
    "description": FieldSetter(_optional_text, _set("description")),
    "category": FieldSetter(_required_text("Category", 100), _set("category")),
    "price": FieldSetter(_price, _set("price")),
    "image": FieldSetter(
        _image_reference(allow_urls=False),
        _replace_image("post", "image", lambda post: post.author_id),
    ),
}


def _patch(
    db: Session,
    *,
    model: type[User] | type[Post],
    label: str,
    fields: dict[str, FieldSetter],
    is_owner: Callable[[Any, User], bool],
    actor: User,
    request: FieldUpdateRequest,
    media: MediaStore,
    enforce_ownership: bool,
) -> Any:
    if request.id is None or not request.field:
        raise FieldValidationError(f"{label} ID and field are required.")

    setter = fields.get(request.field)
    if setter is None:
        raise FieldValidationError(f"Field '{request.field}' cannot be updated.")

    value = request.value.strip() if isinstance(request.value, str) else request.value
    value = setter.validate(value)

    record = db.get(model, request.id)
    if record is None:
        raise RecordNotFoundError(f"{label} not found.")

    if setter.admin_only and not actor.is_admin:
        raise FieldPermissionError(f"Only administrators may change '{request.field}'.")
    if enforce_ownership and not (actor.is_admin or is_owner(record, actor)):
        raise FieldPermissionError(f"Not authorized to update this {label.lower()}.")

    setter.apply(db, record, value, media)
    db.commit()
    db.refresh(record)
    logger.info(
        "User %s set %s.%s on record %s",
        actor.id,
        label.lower(),
        request.field,
        record.id,
    )
    return record


def patch_user_field(
    db: Session,
    actor: User,
    request: FieldUpdateRequest,
    media: MediaStore,
    *,
    enforce_ownership: bool = True,
) -> User:
    """Apply a single allow-listed field patch to a user record.

    Raises:
        FieldValidationError: Missing id/field, unknown field or invalid value.
        RecordNotFoundError: The user id does not resolve.
        FieldPermissionError: The caller may not change this field.
    """
    user: User = _patch(
        db,
        model=User,
        label="User",
        fields=USER_FIELDS,
        is_owner=lambda record, who: record.id == who.id,
        actor=actor,
        request=request,
        media=media,
        enforce_ownership=enforce_ownership,
    )
    return user


def patch_post_field(
    db: Session,
    actor: User,
    request: FieldUpdateRequest,
    media: MediaStore,
    *,
    enforce_ownership: bool = True,
) -> Post:
    """Apply a single allow-listed field patch to a post record."""
    post: Post = _patch(
        db,
        model=Post,
        label="Post",
        fields=POST_FIELDS,
        is_owner=lambda record, who: record.author_id == who.id,
        actor=actor,
        request=request,
        media=media,
        enforce_ownership=enforce_ownership,
    )
    return post
