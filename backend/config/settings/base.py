"""
Base Django settings for the workspace identity backend.

Shared configuration for all environments.
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

from apps.core.logging import configure_logging


class Settings(BaseSettings):
    """Environment-based configuration using pydantic-settings."""

    SECRET_KEY: str = "django-insecure-change-me-in-production"
    DEBUG: bool = False
    ALLOWED_HOSTS: str = ""

    # Database
    DB_NAME: str = "workspace"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: str = "5432"

    # WorkOS
    WORKOS_API_KEY: str = ""
    WORKOS_CLIENT_ID: str = ""
    WORKOS_WEBHOOK_SECRET: str = ""
    # Seconds a signed webhook timestamp may drift; empty to accept any age
    WORKOS_WEBHOOK_TOLERANCE_SECONDS: int | None = 300
    # Defaults to https://api.workos.com/sso/jwks/<client_id>
    WORKOS_JWKS_URL: str = ""

    # Invitations
    INVITATION_EXPIRY_DAYS: int = 7

    # Logging
    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @field_validator("WORKOS_WEBHOOK_TOLERANCE_SECONDS", mode="before")
    @classmethod
    def blank_tolerance_disables_check(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def jwks_url(self) -> str:
        if self.WORKOS_JWKS_URL:
            return self.WORKOS_JWKS_URL
        return f"https://api.workos.com/sso/jwks/{self.WORKOS_CLIENT_ID}"


settings = Settings()

configure_logging(json_format=settings.LOG_JSON, log_level=settings.LOG_LEVEL)

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = settings.SECRET_KEY

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = settings.DEBUG

ALLOWED_HOSTS = [h.strip() for h in settings.ALLOWED_HOSTS.split(",") if h.strip()]

# Application definition
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    # Local apps
    "apps.core",
    "apps.organizations",
    "apps.customers",
    "apps.accounts",
    "apps.invitations",
    "apps.billing",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "apps.core.middleware.WorkOSAuthMiddleware",
]

ROOT_URLCONF = "config.urls"

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": settings.DB_NAME,
        "USER": settings.DB_USER,
        "PASSWORD": settings.DB_PASSWORD,
        "HOST": settings.DB_HOST,
        "PORT": settings.DB_PORT,
    }
}

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Re-exported for code that reads Django settings
WORKOS_API_KEY = settings.WORKOS_API_KEY
WORKOS_CLIENT_ID = settings.WORKOS_CLIENT_ID
INVITATION_EXPIRY_DAYS = settings.INVITATION_EXPIRY_DAYS
