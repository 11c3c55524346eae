import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _bool(name: str, default: bool) -> bool:
    """
    Helper to parse boolean environment variables.
    Accepts: 1, true, yes, on (case-insensitive).
    """
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


def _norm_db_url(url: str | None) -> str | None:
    """
    Normalize database URL to use async drivers for SQLAlchemy.

    Ensures ``postgres`` URLs use ``asyncpg`` and plain ``sqlite`` URLs use
    ``aiosqlite``. URLs already specifying an async driver are returned as-is.
    """
    if not url:
        return None
    if url.startswith("postgres://"):
        url = "postgresql+asyncpg://" + url[len("postgres://") :]
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://") :]
    if url.startswith("sqlite://"):
        url = "sqlite+aiosqlite://" + url[len("sqlite://") :]
    return url


class Config(BaseSettings):
    """
    Application configuration loaded from environment variables.
    Uses pydantic for validation and parsing.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = Field(
        "sqlite+aiosqlite:///./gym_plan.db", description="Database URL"
    )
    LOG_LEVEL: str = Field("INFO", description="Root logging level")
    ALERT_WEBHOOK_URL: str | None = Field(
        None, description="Webhook receiving ERROR log records"
    )
    CORS_ORIGINS: str = Field("", description="Comma-separated allowed CORS origins")
    HOST: str = Field("0.0.0.0", description="API bind address")
    PORT: int = Field(8080, description="API port")

    # Generation defaults
    DEFAULT_DAYS_PER_WEEK: int = Field(4, ge=3, le=5, description="Training days per week")
    DEFAULT_MEALS_PER_DAY: int = Field(5, ge=3, le=6, description="Meals per day")
    SCORE_HISTORY_WINDOW: int = Field(
        5, ge=1, description="Prior sessions used to normalize a new score"
    )
    RECOMMENDATION_WINDOW: int = Field(
        10, ge=1, description="Recent sessions analyzed for recommendations"
    )

    # Feature flags
    FF_ADMIN_ALERTS: bool = Field(
        default_factory=lambda: _bool("FF_ADMIN_ALERTS", True),
        description="Admin alerts feature flag",
    )
    FF_HISTORY_NORMALIZATION: bool = Field(
        default_factory=lambda: _bool("FF_HISTORY_NORMALIZATION", True),
        description="Reward sessions beating the recent score average",
    )

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def validate_database_url(cls, v):
        if not v:
            raise ValueError("DATABASE_URL environment variable is required")
        return _norm_db_url(v)

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL: {v}")
        return level


SETTINGS = Config()  # pyright: ignore[reportCallIssue]
