"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://ladder:ladder@db:5432/ladder"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Race sessions
    # Cancelling is allowed until start_date - preparation_offset.
    preparation_offset_minutes: int = 15
    default_session_capacity: int = 2

    # Spoiler unlock API
    unlock_api_base_url: str = "https://ootrandomizer.com/api/v2"
    unlock_api_key: str = "unlock-placeholder"
    unlock_max_retries: int = 3
    unlock_base_delay_ms: int = 1000
    unlock_max_delay_ms: int = 30_000
    unlock_timeout_seconds: int = 10
    # 20 requests per 10 seconds on the remote side.
    unlock_min_interval_ms: int = 500

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
