from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List


class Settings(BaseSettings):
    """Server-side settings. Built once and handed to create_app()."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    DATABASE_URL: str = Field(
        "sqlite+aiosqlite:///./quiz.db",
        description="Async SQLAlchemy URL (postgresql+asyncpg://... in production)",
    )
    DB_ECHO: bool = False

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])
    # Deployment stage prefix stripped from incoming paths
    PATH_PREFIX: str = "/prod"

    # Store limits
    BATCH_WRITE_LIMIT: int = 25

    # Environment
    ENV: str = "production"  # development, staging, production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"


class ClientSettings(BaseSettings):
    """Participant/admin client settings."""
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="QUIZ_", extra="ignore"
    )

    API_URL: str = Field("", description="Base URL of the quiz API, e.g. https://host/prod")
    REQUEST_TIMEOUT_SECONDS: float = 10.0
    MAX_RETRIES: int = 3
    RETRY_BACKOFF_SECONDS: float = 0.3

    # Local question cache
    REDIS_URL: str = Field("redis://localhost:6379/0")
    CACHE_KEY: str = "cached_questions_v3"

    # Challenge
    CHALLENGE_DURATION_SECONDS: int = 30 * 60
    TIMER_TICK_SECONDS: float = 1.0

    # Admin gate (static shared secret)
    ADMIN_PASSWORD: str = Field("", description="Password for the admin surface")
