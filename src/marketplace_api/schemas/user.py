"""User-related Pydantic schemas."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

PHONE_PATTERN = re.compile(r"^\d{10}$")
PHONE_ERROR = "Invalid phone number. Only digits, exactly 10 digits allowed."


def validate_phone(value: str | None) -> str | None:
    """Return a trimmed phone number, rejecting anything but 10 digits."""
    if value is None:
        return None
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError(PHONE_ERROR)
    return value


class RegisterRequest(BaseModel):
    """Schema for password-based registration."""

    username: str = Field(..., min_length=1, max_length=100, description="Public handle")
    email: EmailStr = Field(..., description="Login email, unique per account")
    password: str = Field(..., min_length=1, description="Plain-text password")
    phone: str | None = Field(None, description="Optional 10-digit phone number")

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        """Trim surrounding whitespace and reject blank usernames."""
        v = v.strip()
        if not v:
            raise ValueError("Username must not be blank")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        return validate_phone(v)


class LoginRequest(BaseModel):
    """Schema for login submissions."""

    email: str = Field(..., description="Account email")
    password: str = Field(..., description="Account password")


class LoginResponse(BaseModel):
    """Response returned after successful login."""

    message: str = "Login successful"
    token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type")
    role: str = Field(..., description="Role of the authenticated account")


class RefreshRequest(BaseModel):
    """Schema for token refresh submissions."""

    token: str | None = Field(None, description="Still-valid token to exchange")


class RefreshResponse(BaseModel):
    """Response carrying a freshly issued token."""

    message: str = "Token refreshed successfully"
    token: str


class UserSummary(BaseModel):
    """Author details embedded in posts and comments."""

    id: int
    username: str
    profile_image: str | None = None


class UserResponse(BaseModel):
    """Full account view returned to authenticated callers."""

    id: int
    username: str
    email: str
    phone: str | None = None
    role: str
    profile_image: str | None = Field(None, description="Base64 image or external URL")
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    """Compact contact profile."""

    id: int
    username: str
    email: str
    phone: str | None = None

    model_config = ConfigDict(from_attributes=True)


class RegisterResponse(BaseModel):
    """Registration acknowledgement."""

    message: str = "User registered successfully"
    user: UserResponse


class UserMessageResponse(BaseModel):
    """Acknowledgement carrying the updated account."""

    message: str
    user: UserResponse


class UserListResponse(BaseModel):
    """Page of accounts plus the total matching count."""

    total: int
    users: list[UserResponse]
