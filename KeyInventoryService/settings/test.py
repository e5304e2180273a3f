"""
Test settings for KeyInventoryService.
"""

import os
import urllib.parse

from .base import *  # noqa: F403, F401

DEBUG = False

# Use PostgreSQL in CI (from DATABASE_URL), SQLite in-memory for local tests
DATABASE_URL = os.environ.get("DATABASE_URL")
if DATABASE_URL and DATABASE_URL.startswith("postgresql"):
    parsed = urllib.parse.urlparse(DATABASE_URL)
    db_name = parsed.path.lstrip("/")
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": db_name,
            "USER": parsed.username or "postgres",
            "PASSWORD": parsed.password or "",
            "HOST": parsed.hostname or "localhost",
            "PORT": parsed.port or 5432,
            "TEST": {"NAME": db_name + "_test"},
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": ":memory:",
        }
    }

# Apps ship no migrations; tables are created directly
MIGRATION_MODULES = {}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_BROKER_URL = "memory://"

KEY_INVENTORY = {
    **KEY_INVENTORY,  # noqa: F405
    "KEY_CHARS": "ABCDEFGHJKLMNPQRSTUVWXYZ23456789",
    "KEY_LENGTH": 16,
    "LOW_WATERMARK": 5,
    "REPLENISH_BATCH_SIZE": 10,
    "AUTO_REPLENISH": False,
    "REGISTER_EVENT_HANDLERS": False,
    "OBSERVABILITY_ENABLED": False,
}

# Disable logging during tests
LOGGING_CONFIG = None
