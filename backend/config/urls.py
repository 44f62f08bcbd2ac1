"""
URL configuration for the backend.
"""

from django.urls import path

from apps.accounts.webhooks import workos_webhook

from .api import api

urlpatterns = [
    path("api/v1/", api.urls),
    # Webhooks - outside Django Ninja for raw request handling
    path("webhooks/workos/", workos_webhook, name="workos-webhook"),
]
