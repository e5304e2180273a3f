"""
Engine configuration.

Values come from the ``KEY_INVENTORY`` dict in Django settings; anything
missing falls back to the defaults below.
"""
import string
from typing import Any, Dict

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

DEFAULTS: Dict[str, Any] = {
    "CREDITS_PER_KEY": 1,
    # CAS rounds before a contended draw gives up
    "DRAW_MAX_ATTEMPTS": 5,
    "KEY_CHARS": string.ascii_uppercase + string.digits,
    "KEY_LENGTH": 16,
    "LOW_WATERMARK": 50,
    "REPLENISH_BATCH_SIZE": 200,
    "AUTO_REPLENISH": False,
    "REGISTER_EVENT_HANDLERS": True,
    "OBSERVABILITY_ENABLED": True,
}


def get_engine_setting(name: str) -> Any:
    """
    Get an engine setting.

    Args:
        name: Setting name, e.g. ``"DRAW_MAX_ATTEMPTS"``

    Returns:
        Configured value or its default

    Raises:
        KeyError: If the setting name is unknown
    """
    if name not in DEFAULTS:
        raise KeyError(f"Unknown key inventory setting: {name}")
    try:
        overrides = getattr(settings, "KEY_INVENTORY", {})
    except ImproperlyConfigured:
        # Used outside a configured Django project
        overrides = {}
    return overrides.get(name, DEFAULTS[name])
