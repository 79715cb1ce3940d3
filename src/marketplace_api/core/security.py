"""Password hashing primitives backed by bcrypt."""
from __future__ import annotations

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of `password`."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check `plain_password` against a stored hash.

    Accounts created through federated login have no password hash; they can
    never authenticate with a password.
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)
