"""Application configuration using pydantic-settings."""

import os
from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Secrets (the database password) are read from the environment, a ``.env``
    file, or a secrets directory named by ``EDUCRM_SECRETS_DIR``. They are never
    accepted as command-line flags.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        secrets_dir=os.environ.get("EDUCRM_SECRETS_DIR"),
    )

    # Application
    app_name: str = "EduCRM"
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_log_level: str = "INFO"
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Server
    listen_addr: str = "0.0.0.0:8000"
    request_timeout: float = Field(default=30.0, gt=0)

    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "educrm"
    db_password: SecretStr = SecretStr("")
    db_name: str = "educrm"
    database_url: str | None = None
    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_pool_timeout: float = 10.0
    transaction_max_retries: int = Field(default=3, ge=0)
    transaction_retry_base_delay: float = 0.01

    # Sessions
    session_ttl: timedelta = timedelta(hours=24)
    session_touch_interval: timedelta = timedelta(seconds=60)
    password_hash_cost: int = Field(default=12, ge=10, le=16)

    # Pagination
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    @field_validator("listen_addr")
    @classmethod
    def validate_listen_addr(cls, v: str) -> str:
        host, sep, port = v.rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ValueError("listen_addr must be in host:port form")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def listen_host(self) -> str:
        return self.listen_addr.rpartition(":")[0]

    @property
    def listen_port(self) -> int:
        return int(self.listen_addr.rpartition(":")[2])

    @property
    def async_database_url(self) -> str:
        """Get database URL with asyncpg driver for async SQLAlchemy."""
        if self.database_url:
            url = self.database_url
            # Convert postgresql:// to postgresql+asyncpg://
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            return url
        url = URL.create(
            drivername="postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password.get_secret_value() or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )
        return url.render_as_string(hide_password=False)

    @property
    def sync_database_url(self) -> str:
        """Get database URL without the async driver (Alembic)."""
        url = self.async_database_url
        if "+asyncpg" in url:
            url = url.replace("+asyncpg", "", 1)
        if "+aiosqlite" in url:
            url = url.replace("+aiosqlite", "", 1)
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
