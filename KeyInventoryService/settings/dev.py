"""
Development settings for KeyInventoryService.
"""

import os

from .base import *  # noqa: F403, F401
from .logging import get_logging_config

DEBUG = True

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "0.0.0.0"]

# Database - PostgreSQL by default, DB_ENGINE=sqlite for a local file
if os.environ.get("DB_ENGINE") == "sqlite":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",  # noqa: F405
        }
    }

# Run Celery tasks inline unless a broker is configured
CELERY_TASK_ALWAYS_EAGER = "CELERY_BROKER_URL" not in os.environ

KEY_INVENTORY = {
    **KEY_INVENTORY,  # noqa: F405
    "OBSERVABILITY_ENABLED": os.environ.get("OBSERVABILITY_ENABLED", "false").lower() == "true",
}

LOGGING = get_logging_config("development")
