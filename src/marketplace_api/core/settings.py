"""Application settings and configuration.

This module defines all configuration options for the marketplace API.
Settings are loaded from environment variables (and an optional `.env` file)
with sensible defaults. A single `settings` instance is created at import time
and handed to services through FastAPI dependencies.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Marketplace API", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    port: int = Field(default=5000, alias="PORT")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    federated_token_expire_days: int = Field(default=7, alias="FEDERATED_TOKEN_EXPIRE_DAYS")

    # When false, field patches skip the owner-or-admin check (legacy behavior).
    field_patch_enforce_ownership: bool = Field(
        default=True,
        alias="FIELD_PATCH_ENFORCE_OWNERSHIP",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./marketplace.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Media storage
    upload_root: str = Field(default="uploads", alias="UPLOAD_ROOT")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")

    # Generative AI price suggestions
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash", alias="GEMINI_MODEL")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_BASE_URL",
    )
    ai_timeout_seconds: float = Field(default=30.0, alias="AI_TIMEOUT_SECONDS")

    # Google federated login
    google_client_id: str | None = Field(default=None, alias="GOOGLE_CLIENT_ID")
    google_client_secret: str | None = Field(default=None, alias="GOOGLE_CLIENT_SECRET")
    google_redirect_uri: str = Field(
        default="http://localhost:5000/api/auth/google/callback",
        alias="GOOGLE_REDIRECT_URI",
    )
    oauth_timeout_seconds: float = Field(default=10.0, alias="OAUTH_TIMEOUT_SECONDS")
    frontend_url: str = Field(default="http://localhost:5173", alias="FRONTEND_URL")
    oauth_cookie_max_age_seconds: int = Field(default=120, alias="OAUTH_COOKIE_MAX_AGE_SECONDS")
    cookie_secure: bool = Field(default=False, alias="COOKIE_SECURE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def google_oauth_enabled(self) -> bool:
        """Return True when both Google client credentials are configured."""
        return bool(self.google_client_id and self.google_client_secret)


settings = Settings()  # type: ignore[call-arg]


def get_settings() -> Settings:
    """Return the process-wide settings instance for dependency injection."""
    return settings
