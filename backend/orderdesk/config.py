"""
Configuration settings for Order Desk.
Loads from environment variables with validation.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Order Desk"
    DEBUG: bool = False
    SECRET_KEY: str
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Database
    DATABASE_URL: str

    # Order lifecycle
    AUTO_DELIVERY_DAYS: int = 3  # Speed Post orders older than this are marked delivered
    AUTO_DELIVERY_INTERVAL_SECONDS: int = 0  # 0 disables the scheduled sweep
    ORDER_ID_MAX_ATTEMPTS: int = 5

    def validate_production_settings(self):
        """Validate critical settings for production deployment."""
        if not self.DEBUG and len(self.SECRET_KEY) < 32:
            raise ValueError(
                "SECRET_KEY must be at least 32 characters in production. "
                "Generate with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    """Cached settings loader with production validation."""
    settings = Settings()
    if not settings.DEBUG:
        settings.validate_production_settings()
    return settings
