"""Core app configuration."""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Shared base models, auth context and middleware."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.core"
