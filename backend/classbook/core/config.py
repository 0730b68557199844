# backend/classbook/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    environment: Literal["development", "test", "staging", "production"] = "development"
    is_testing: bool = False
    log_level: str = Field(default="INFO", description="Root logging level")
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of origins allowed by CORS",
    )

    # Identity provider tokens (HS256, `sub` carries the identity id)
    secret_key: SecretStr = Field(
        default=SecretStr("dev-only-secret-key-change-me"),
        description="Secret key used to verify identity provider JWTs",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # 12 hours

    # Database
    database_url: str = Field(
        default="sqlite:///./classbook.db",
        alias="DATABASE_URL",
        description="SQLAlchemy database URL",
    )
    test_database_url_raw: Optional[str] = Field(
        default=None,
        alias="TEST_DATABASE_URL",
        description="Database used instead of DATABASE_URL while testing",
    )
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    sqlite_busy_timeout_seconds: int = 30

    # Booking and credit policy
    cancellation_window_hours: int = Field(
        default=2,
        ge=0,
        description="Bookings may be cancelled until this many hours before class start",
    )
    signup_credit_grant: int = Field(
        default=10,
        ge=0,
        description="Credits granted to a newly provisioned profile",
    )
    min_class_duration_minutes: int = 15
    max_class_duration_minutes: int = 180
    near_capacity_ratio: float = Field(default=0.8, gt=0, le=1)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = (value or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {value}")
        return level

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def get_database_url(self) -> str:
        """Return the database URL the engine should connect to."""
        if self.is_testing and self.test_database_url_raw:
            return self.test_database_url_raw
        return self.database_url


settings = Settings()

if is_running_tests():
    settings.is_testing = True
