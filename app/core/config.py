# app/core/config.py
from __future__ import annotations

import secrets
import warnings
from typing import Annotated, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings, loaded from environment variables and/or .env file.
    """

    # Environment settings
    APP_NAME: str = "Forge Site Backend"
    APP_ENV: str = "development"
    PUBLIC_URL: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Security / auth
    SECRET_KEY: str = Field(default="", repr=False)
    SECRET_KEY_AUTO_GENERATED: bool = False
    ENABLE_DEBUG_ENDPOINTS: bool = False
    CORS_ALLOW_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Comma-delimited list of allowed origins",
    )

    # Database settings
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_DB: str = "forge_site"
    POSTGRES_SERVER: str = "db"
    POSTGRES_PORT: int = 5432

    # Redis settings
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379

    # Celery settings
    CELERY_BROKER_URL: str = "redis://redis:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://redis:6379/0"

    # Observability settings
    SENTRY_DSN: Optional[str] = None

    # Lead notification mail
    NOTIFICATIONS_ENABLED: bool = True
    SMTP_HOST: str = "smtp.office365.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = Field(default=None, repr=False)
    SMTP_FROM_EMAIL: Optional[str] = None

    # Security headers / CSP
    ENABLE_SECURITY_HEADERS: bool = True
    CSP_REPORT_ONLY: bool = False
    DISABLE_CSP: bool = False

    # HTTPS enforcement
    FORCE_HTTPS: bool = False
    HSTS_MAX_AGE: int = 31536000  # 1 year
    HSTS_INCLUDE_SUBDOMAINS: bool = True
    HSTS_PRELOAD: bool = False

    # CSRF
    CSRF_SECRET: Optional[str] = Field(default=None, repr=False)
    CSRF_COOKIE_NAME: str = "csrf-token"
    CSRF_COOKIE_MAX_AGE: int = 60 * 60 * 24  # 24 hours

    # Sessions (JWT in a cookie)
    SESSION_COOKIE_NAME: str = "session-token"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 30 * 24 * 60  # 30 days
    JWT_ISSUER: Optional[str] = None

    # Rate limiting
    RATE_LIMIT_REDIS_ENABLED: bool = False
    RATE_LIMIT_CLEANUP_INTERVAL_SECONDS: int = 5 * 60

    @property
    def is_production(self) -> bool:
        return (self.APP_ENV or "").lower() == "production"

    @property
    def is_development(self) -> bool:
        return (self.APP_ENV or "").lower() in ("development", "dev", "local")

    @property
    def database_url(self) -> str:
        """Construct the database URL from individual components."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def redis_url(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"

    @property
    def csrf_secret(self) -> str:
        return self.CSRF_SECRET or self.SECRET_KEY

    @field_validator("CORS_ALLOW_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        """Allow comma-separated strings for origins env var."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @model_validator(mode="after")
    def _ensure_secret_key(self) -> "Settings":
        """Guarantee SECRET_KEY is present in non-development environments."""
        secret = (self.SECRET_KEY or "").strip()
        environment = (self.APP_ENV or "development").lower()

        if not secret or secret.lower() == "change-me":
            if environment in {"development", "test", "testing"}:
                # Generate an ephemeral key for local dev/tests and warn loudly.
                generated = secrets.token_urlsafe(48)
                self.SECRET_KEY = generated
                self.SECRET_KEY_AUTO_GENERATED = True
                warnings.warn(
                    (
                        "SECRET_KEY was not provided; generated ephemeral key for "
                        f"{environment} environment. "
                        "Do not use this configuration in production."
                    ),
                    RuntimeWarning,
                )
            else:
                raise ValueError(
                    (
                        "SECRET_KEY must be set for secure operation. "
                        "Set SECRET_KEY in the environment or .env file before "
                        "starting the service."
                    )
                )
        return self

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


settings = Settings()
