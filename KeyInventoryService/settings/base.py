"""
Base Django settings for KeyInventoryService.

These settings are shared across all environments.
Environment-specific overrides are in dev.py, test.py, and prod.py
"""
import os
import string
from pathlib import Path

from KeyInventoryService.settings.logging import get_logging_config

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = os.environ.get("SECRET_KEY", "django-insecure-key-inventory-local-only")

DEBUG = False
ALLOWED_HOSTS = []

# Application definition
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # Local apps
    "KeyInventoryService.apps.KeyInventoryServiceConfig",
    "core",
    "inventory",
    "allocation",
]

MIDDLEWARE = []

# Database
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "key_inventory"),
        "USER": os.environ.get("DB_USER", "postgres"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "postgres"),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "OPTIONS": {
            "connect_timeout": 10,
        },
    }
}

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Key inventory engine
KEY_INVENTORY = {
    "CREDITS_PER_KEY": 1,
    "DRAW_MAX_ATTEMPTS": int(os.environ.get("DRAW_MAX_ATTEMPTS", "5")),
    "KEY_CHARS": os.environ.get("KEY_CHARS", string.ascii_uppercase + string.digits),
    "KEY_LENGTH": int(os.environ.get("KEY_LENGTH", "16")),
    "LOW_WATERMARK": int(os.environ.get("KEY_POOL_LOW_WATERMARK", "50")),
    "REPLENISH_BATCH_SIZE": int(os.environ.get("KEY_POOL_REPLENISH_BATCH_SIZE", "200")),
    "AUTO_REPLENISH": os.environ.get("KEY_POOL_AUTO_REPLENISH", "false").lower() == "true",
    "REGISTER_EVENT_HANDLERS": True,
    "OBSERVABILITY_ENABLED": os.environ.get("OBSERVABILITY_ENABLED", "true").lower() == "true",
}

# Celery
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    "replenish-low-pools": {
        "task": "core.tasks.replenish_low_pools_task",
        "schedule": 300.0,
    },
}

# Observability
LOGGING = get_logging_config(os.environ.get("ENVIRONMENT", "production"))
