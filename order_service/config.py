"""Configuration management for Order Service."""

import sys
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service Configuration
    SERVICE_NAME: str = "order-service"
    SERVICE_HOST: str = "0.0.0.0"
    SERVICE_PORT: int = 8050
    DEBUG: bool = False

    # Database Configuration (unset -> in-memory repositories)
    DATABASE_URL: Optional[str] = None
    DATABASE_POOL_MIN_SIZE: int = 2
    DATABASE_POOL_MAX_SIZE: int = 10

    # Email Configuration (Resend, unset key -> console channel)
    RESEND_API_KEY: Optional[str] = None
    RESEND_FROM_EMAIL: str = "noreply@example.com"
    RESEND_FROM_NAME: str = "Newsletter Service"
    EMAIL_SEND_TIMEOUT_SECONDS: float = 10.0

    # Dispatch
    DISPATCH_DELAY_MS: int = 0
    DISPATCH_MAX_CONCURRENCY: int = 1

    # Discount campaign schedule
    CAMPAIGN_ENABLED: bool = True
    CAMPAIGN_SEND_HOUR: int = 12
    CAMPAIGN_SEND_MINUTE: int = 0
    CAMPAIGN_TIMEZONE: str = "UTC"

    CATALOG_SERVICE_URL: Optional[str] = None
    WEBSITE_URL: str = "#"

    # CORS Configuration
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"

    LOG_LEVEL: str = "INFO"

    @field_validator("RESEND_API_KEY")
    @classmethod
    def validate_resend_api_key(cls, v: Optional[str]) -> Optional[str]:
        """Warn when the Resend API key does not look like a real key."""
        if v is None or v.strip() == "":
            return None
        if v.startswith("re_") is False:
            print(
                "WARNING: RESEND_API_KEY does not appear to be a valid Resend key",
                file=sys.stderr,
            )
        return v

    @field_validator("CAMPAIGN_SEND_HOUR")
    @classmethod
    def validate_send_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError("CAMPAIGN_SEND_HOUR must be between 0 and 23")
        return v

    @field_validator("CAMPAIGN_SEND_MINUTE")
    @classmethod
    def validate_send_minute(cls, v: int) -> int:
        if not 0 <= v <= 59:
            raise ValueError("CAMPAIGN_SEND_MINUTE must be between 0 and 59")
        return v

    @field_validator("CAMPAIGN_TIMEZONE")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown CAMPAIGN_TIMEZONE: {v}") from e
        return v

    @field_validator("DISPATCH_MAX_CONCURRENCY")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("DISPATCH_MAX_CONCURRENCY must be >= 1")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def campaign_tz(self) -> ZoneInfo:
        return ZoneInfo(self.CAMPAIGN_TIMEZONE)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
