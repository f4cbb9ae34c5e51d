# src/sentiment_dashboard/core/config.py

import os
from typing import Literal, Optional

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_core import MultiHostUrl


class Settings(BaseSettings):
    """
    Application settings.
    Values are read from the environment and from the .env files listed in
    `model_config`, then validated and typed.
    """

    # --- Application Environment & Logging ---
    ENVIRONMENT: Literal["dev", "prod"] = "prod"
    LOG_LEVEL: str = "INFO"

    # --- Web Server Settings ---
    BACKEND_CORS_ORIGINS: str = "http://localhost:8080,http://localhost:5173,http://localhost:3001"

    # --- PostgreSQL Configuration ---
    POSTGRES_USER: str
    POSTGRES_PASSWORD: SecretStr
    POSTGRES_DB: str
    POSTGRES_HOST: str
    POSTGRES_PORT: int = Field(5432, gt=1023, lt=65536)

    # Full SQLAlchemy URL. When set it wins over the POSTGRES_* parts
    # (used by the test-suite and one-off scripts).
    DATABASE_URL: Optional[str] = None

    # --- Connection Pool ---
    DB_POOL_SIZE: int = Field(10, gt=0,
        description="Persistent connections kept in the pool.")
    DB_MAX_OVERFLOW: int = Field(20, ge=0,
        description="Extra connections allowed above DB_POOL_SIZE under load.")
    DB_POOL_TIMEOUT_SECONDS: float = Field(30.0, gt=0,
        description="How long a request waits for a free connection.")
    DB_ECHO: bool = False

    # --- Query Defaults ---
    DEFAULT_PAGE_LIMIT: int = Field(100, ge=0,
        description="Page size used when a list request does not provide a valid limit.")
    USERS_DEFAULT_PAGE_LIMIT: int = Field(18, gt=0,
        description="Page size of the commenter directory.")
    USERS_MAX_PAGE_LIMIT: int = Field(100, gt=0)

    @property
    def is_dev(self) -> bool:
        """True when running in development mode."""
        return self.ENVIRONMENT == "dev"

    @computed_field
    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Async URL for the application engine (asyncpg)."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return str(MultiHostUrl.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD.get_secret_value(),
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB
        ))

    @computed_field
    @property
    def SYNC_DATABASE_URL(self) -> str:
        """Sync URL for Alembic."""
        return str(MultiHostUrl.build(
            scheme="postgresql",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD.get_secret_value(),
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB
        ))

    model_config = SettingsConfigDict(
        env_file=(".env", f".env.{os.getenv('ENVIRONMENT', 'prod')}"),
        env_file_encoding='utf-8',
        extra='ignore'
    )

settings = Settings()
