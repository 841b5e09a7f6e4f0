"""Application configuration using Pydantic Settings."""
import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_DEV_OTP_SECRET = "dev-insecure-fallback-key-do-not-use-in-production"


class Settings(BaseSettings):
    """Application settings, read from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "iiskills-access"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_V1_PREFIX: str = "/api/v1"

    # Database
    DATABASE_URL: str = "sqlite:///./iiskills_access.db"

    # OTP hashing
    OTP_SECRET: Optional[str] = None

    # Resend (email)
    RESEND_API_KEY: Optional[str] = None
    RESEND_FROM_EMAIL: str = "info@iiskills.cloud"

    # Twilio (SMS)
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_FROM_NUMBER: Optional[str] = None

    NOTIFICATION_MAX_RETRIES: int = Field(default=3, ge=1)

    # Redis / rate limiting
    REDIS_URL: Optional[str] = None
    OTP_SEND_LIMIT: int = 5
    OTP_SEND_WINDOW_SECS: int = 3600
    OTP_VERIFY_ATTEMPTS: int = 5
    OTP_VERIFY_LOCK_SECS: int = 3600

    @computed_field
    @property
    def SMS_ENABLED(self) -> bool:
        return bool(self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_FROM_NUMBER)

    def resolve_otp_secret(self) -> str:
        """Return the HMAC key for OTP digests.

        Outside development a missing secret is a configuration error.
        """
        if self.OTP_SECRET:
            return self.OTP_SECRET
        if self.ENVIRONMENT != "development":
            raise RuntimeError("OTP_SECRET environment variable is required")
        logger.warning("OTP_SECRET not set, using insecure fallback for development only")
        return _DEV_OTP_SECRET


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
