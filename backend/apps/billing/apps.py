"""Billing app configuration."""

from django.apps import AppConfig


class BillingConfig(AppConfig):
    """Plan tiers and usage limits. No models; subscription state lives on Organization."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.billing"
