# src/marketplace_api/models/user.py
"""SQLAlchemy model for user accounts."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace_api.db.session import Base
from marketplace_api.db.time import utcnow

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .comment import Comment
    from .post import Post

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    """A marketplace account, password-based or linked to a Google identity."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    # Null for accounts created through federated login only.
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    google_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_USER)
    phone: Mapped[str | None] = mapped_column(String(10), nullable=True)
    # Stored file name under user-images/, or an external avatar URL.
    profile_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    posts: Mapped[list[Post]] = relationship("Post", back_populates="author")
    comments: Mapped[list[Comment]] = relationship("Comment", back_populates="author")
    liked_posts: Mapped[list[Post]] = relationship(
        "Post",
        secondary="post_likes",
        back_populates="likers",
    )

    @property
    def is_admin(self) -> bool:
        """Return True if the account holds the admin role."""
        return self.role == ROLE_ADMIN
