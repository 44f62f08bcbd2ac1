"""
Test settings.

In-memory SQLite and fixed dummy WorkOS credentials. Provider calls are
patched in tests; nothing here reaches the network.
"""

from .base import *  # noqa: F403
from .base import settings

DEBUG = False
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

settings.WORKOS_API_KEY = "sk_test_dummy"
settings.WORKOS_CLIENT_ID = "client_test_dummy"
settings.WORKOS_WEBHOOK_SECRET = "whsec_test_secret"
WORKOS_API_KEY = settings.WORKOS_API_KEY
WORKOS_CLIENT_ID = settings.WORKOS_CLIENT_ID
