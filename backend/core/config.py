"""Core configuration with Pydantic v2 Settings."""

from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    app_env: str = "development"
    database_url: str = "sqlite:///./invoicing.db"
    log_level: str = "INFO"
    enable_metrics: bool = True

    # Public base URL used to build invoice share links
    BASE_URL: str = "http://localhost:8000"

    # Business defaults seeded into the settings table on first start
    DEFAULT_MILEAGE_RATE: Decimal = Decimal("0.70")
    DEFAULT_CURRENCY: str = "USD"
    DEFAULT_PAYMENT_TERMS: str = "Due in 30 days"
    DEFAULT_DUE_DAYS: int = 30

    # Insert the "standard" (1.0, default) rate modifier at bootstrap
    SEED_DEFAULT_RATE_MODIFIER: bool = True


# Global settings instance
settings = Settings()
