"""
Local development settings.

Extends base settings with development-friendly defaults.
"""

from .base import *  # noqa: F403
from .base import configure_logging, settings

DEBUG = True
ALLOWED_HOSTS = ["localhost", "127.0.0.1"]

# Human-readable logs in the terminal
configure_logging(json_format=False, log_level=settings.LOG_LEVEL)
