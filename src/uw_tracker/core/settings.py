"""Application settings and configuration.

This module defines all configuration options for the UW Tracker service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="UW Assignment Tracker", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(default="", alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 12,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    allowed_email_domains: list[str] = Field(
        default=["nationslending.com"],
        alias="ALLOWED_EMAIL_DOMAINS",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./uw_tracker.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Civil time: fixed offset from UTC and the hour at which a new business day starts
    civil_utc_offset_hours: int = Field(default=-6, alias="CIVIL_UTC_OFFSET_HOURS")
    day_boundary_hour: int = Field(default=2, ge=0, le=23, alias="DAY_BOUNDARY_HOUR")

    # Locale used to collate names on the board; empty means the process environment
    collation_locale: str = Field(default="", alias="COLLATION_LOCALE")

    # Board notifications and audit retention
    notification_ttl_seconds: float = Field(default=4.0, alias="NOTIFICATION_TTL_SECONDS")
    audit_max_entries: int = Field(default=500, alias="AUDIT_MAX_ENTRIES")

    # Retry policy for durable store writes
    store_retry_max_attempts: int = Field(default=3, ge=1, alias="STORE_RETRY_MAX_ATTEMPTS")
    store_retry_base_delay_seconds: float = Field(
        default=1.0,
        alias="STORE_RETRY_BASE_DELAY_SECONDS",
    )
    store_retry_max_delay_seconds: float = Field(
        default=10.0,
        alias="STORE_RETRY_MAX_DELAY_SECONDS",
    )
    store_retry_backoff_multiplier: float = Field(
        default=2.0,
        alias="STORE_RETRY_BACKOFF_MULTIPLIER",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    def missing_required(self) -> list[str]:
        """Return the names of required settings that are empty."""
        missing = []
        if not self.secret_key:
            missing.append("SECRET_KEY")
        if not self.database_url:
            missing.append("DATABASE_URL")
        return missing


settings = Settings()
