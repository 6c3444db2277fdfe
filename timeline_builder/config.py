"""Timeline Builder configuration via pydantic-settings."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_logger = logging.getLogger(__name__)

_INSECURE_DEFAULT_SECRET = "CHANGE-ME-in-production"  # nosec B105


def is_production() -> bool:
    env = os.environ.get("TLB_ENV", "development").lower()
    return env in ("production", "prod", "staging")


class Settings(BaseSettings):
    """Service settings loaded from environment variables.

    All variables are prefixed with ``TLB_`` (e.g. ``TLB_DATABASE_URL``).
    """

    # Persistence
    persistence_backend: Literal["sql", "json", "memory"] = "sql"
    database_url: str = "sqlite+aiosqlite:///./timeline_builder.db"
    json_storage_dir: str = "./data"

    def model_post_init(self, __context: object) -> None:
        """Ensure the database URL uses an async driver and validate secrets."""
        if self.database_url.startswith("postgresql://"):
            self.database_url = self.database_url.replace(
                "postgresql://", "postgresql+asyncpg://", 1
            )
        # Refuse to start with the default signing secret in production
        if self.viewer_jwt_secret == _INSECURE_DEFAULT_SECRET:
            if is_production():
                raise ValueError(
                    "TLB_VIEWER_JWT_SECRET must be set to a secure value in production. "
                    'Generate one with: python -c "import secrets; print(secrets.token_urlsafe(64))"'
                )
            _logger.warning(
                "Using insecure default viewer JWT secret. Set TLB_VIEWER_JWT_SECRET for production."
            )

    # Viewer-session JWT
    viewer_jwt_secret: str = _INSECURE_DEFAULT_SECRET
    viewer_jwt_expiry_minutes: int = 60 * 12

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_prefix="TLB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance."""
    return Settings()
