"""
Application settings
Read from environment variables / .env
"""
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "PMS Lifecycle"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./pms_lifecycle.db"

    # JWT
    SECRET_KEY: str = "pms-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Transitions
    TRANSITION_LOCK_TIMEOUT_SECONDS: float = 5.0

    # Automation
    AUTOMATION_ENABLED: bool = True
    AUTOMATION_MAX_WORKERS: int = 4
    AUTOMATION_INTERVAL_SECONDS: int = 300
    AUTOMATION_PROPERTY_REFRESH_SECONDS: int = 600

    # Property settings cache
    CONFIG_CACHE_TTL_SECONDS: float = 300.0

    # Notifications
    NOTIFICATION_WORKERS: int = 2
    NOTIFICATION_MAX_ATTEMPTS: int = 3
    NOTIFICATION_RETRY_DELAY_SECONDS: float = 0.5
    NOTIFICATION_WEBHOOK_URL: Optional[str] = None
    NOTIFICATION_WEBHOOK_TIMEOUT_SECONDS: float = 10.0

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# Global settings instance
settings = Settings()
