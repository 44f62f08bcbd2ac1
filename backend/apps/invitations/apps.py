"""Invitations app configuration."""

from django.apps import AppConfig


class InvitationsConfig(AppConfig):
    """Configuration for invitations app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.invitations"
