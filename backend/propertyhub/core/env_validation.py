"""
Runtime Environment Validation Module

Validates configuration at application startup. If validation fails the
application refuses to start (hard fail, exit code 1).
"""

import os
import sys

from pydantic import ValidationError

from propertyhub.core.config import Settings, get_settings

SUPPORTED_DB_SCHEMES = ("postgresql", "sqlite")


def collect_errors(settings: Settings) -> list[str]:
    """Return a list of human readable configuration problems."""
    errors = []

    # 1. CORS: wildcard only allowed in debug
    if not settings.debug and "*" in settings.origins:
        errors.append(
            "Wildcard CORS origin (*) detected in production mode. "
            "Set ALLOWED_ORIGINS to specific domains (comma-separated)."
        )

    # 2. Database URL
    if not settings.database_url.startswith(SUPPORTED_DB_SCHEMES):
        errors.append(
            "DATABASE_URL must be a PostgreSQL (postgresql+asyncpg://) "
            "or SQLite (sqlite+aiosqlite://) connection string"
        )
    elif settings.database_url.startswith("sqlite") and not settings.debug:
        errors.append("SQLite DATABASE_URL is only allowed when DEBUG=true")

    # 3. Firebase credentials
    if not settings.debug and not settings.firebase_project_id:
        errors.append("FIREBASE_PROJECT_ID is required outside debug mode")
    if settings.google_application_credentials and not os.path.exists(
        settings.google_application_credentials
    ):
        errors.append(
            f"Firebase credentials file not found: {settings.google_application_credentials}"
        )

    # 4. Mobile money
    if settings.momo_enabled:
        missing = [
            name
            for name in ("momo_api_user", "momo_api_key", "momo_subscription_key")
            if not getattr(settings, name)
        ]
        if missing:
            errors.append(
                f"{', '.join(m.upper() for m in missing)} required when MOMO_ENABLED=true"
            )

    # 5. SMTP
    if settings.smtp_enabled and not settings.smtp_host:
        errors.append("SMTP_HOST required when SMTP_ENABLED=true")

    return errors


def validate_environment() -> Settings:
    """
    Validate all required environment variables at startup.

    Raises:
        SystemExit: If validation fails (exit code 1)
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        print("❌ FATAL: Environment validation failed", file=sys.stderr)
        print("\nMissing or invalid environment variables:", file=sys.stderr)
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            print(f"   • {field}: {error['msg']}", file=sys.stderr)
        print("\nPlease check your .env file or environment variables.", file=sys.stderr)
        sys.exit(1)

    errors = collect_errors(settings)
    if errors:
        for message in errors:
            print(f"❌ FATAL: {message}", file=sys.stderr)
        print("\nThe application cannot start with invalid configuration.", file=sys.stderr)
        sys.exit(1)

    print("✅ Environment validation passed")
    print(f"   App: {settings.app_name}")
    print(f"   Debug: {settings.debug}")
    print(f"   Mobile money: {'enabled' if settings.momo_enabled else 'disabled'}")
    print(f"   SMTP: {'enabled' if settings.smtp_enabled else 'log only'}")
    print(f"   CORS Origins: {settings.allowed_origins}")

    return settings


if __name__ == "__main__":
    validate_environment()
    print("\n✅ All environment variables are valid!")
