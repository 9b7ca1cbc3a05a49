"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "PropertyHub"
    debug: bool = False
    api_prefix: str = "/api"
    log_level: str = "INFO"
    public_app_url: str = "http://localhost:3000"

    # Database
    database_url: str = "sqlite+aiosqlite:///./propertyhub.db"

    # Firebase Auth
    firebase_project_id: Optional[str] = None
    google_application_credentials: Optional[str] = None

    # CORS
    allowed_origins: str = "http://localhost:3000"

    # Locale
    currency_code: str = "ZMW"
    currency_symbol: str = "K"
    timezone: str = "Africa/Lusaka"

    # Business rules (money in NGWEE - integer minor units)
    lease_activation_window_days: int = 7
    payment_max_cents: int = 100_000_000
    invoice_payment_terms: str = "Net 30"
    # Clamped to the month length, so 31 means "last day of the month"
    invoice_due_day: int = Field(10, ge=1, le=31)
    upcoming_payment_days: int = 5
    lease_expiring_days: int = 30

    # MTN Mobile Money (Collection API)
    momo_enabled: bool = False
    momo_base_url: str = "https://sandbox.momodeveloper.mtn.com"
    momo_api_user: Optional[str] = None
    momo_api_key: Optional[str] = None
    momo_subscription_key: Optional[str] = None
    momo_target_environment: str = "sandbox"
    momo_currency: str = "EUR"
    momo_callback_url: Optional[str] = None
    momo_timeout_seconds: float = 30.0

    # SMTP email
    smtp_enabled: bool = False
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    email_from: str = "PropertyHub <no-reply@propertyhub.local>"

    # Rate limits (slowapi syntax, per client address)
    rate_limit_enabled: bool = True
    rate_limit_register: str = "5/hour"
    rate_limit_payments: str = "20/minute"
    rate_limit_momo: str = "5/minute"

    @property
    def origins(self) -> list[str]:
        """Allowed CORS origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
