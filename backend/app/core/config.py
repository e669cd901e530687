"""Application configuration settings.

All configuration values are loaded from environment variables (.env file).
No sensitive values should be hardcoded here.
"""

from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    PROJECT_NAME: str = "Subscription Billing API"
    VERSION: str = "0.1.0"
    API_PREFIX: str = "/api"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Database - REQUIRED
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # CORS
    CORS_ORIGINS: list[str] = []

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_TIMEOUT_SECONDS: float = 8.0

    # Stripe price IDs per plan (optional; when set, client price_id must match)
    STRIPE_PRICE_ID_STARTER: str = ""
    STRIPE_PRICE_ID_GROWTH: str = ""
    STRIPE_PRICE_ID_SCALING: str = ""
    STRIPE_PRICE_ID_ENTERPRISE: str = ""

    # Password hashing
    BCRYPT_ROUNDS: int = 12

    # Tracing
    OTLP_ENDPOINT: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
