"""
App configuration for Key Inventory Service.
"""

import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class KeyInventoryServiceConfig(AppConfig):
    """App configuration for KeyInventoryService."""

    name = "KeyInventoryService"
    verbose_name = "Key Inventory Service"

    def ready(self):
        """
        Called when Django starts.

        Validates the random key source so a bad ``KEY_CHARS`` or
        ``KEY_LENGTH`` stops startup, then wires observability and event
        handlers.
        """
        from core.config import get_engine_setting
        from inventory.domain.key_source import RandomKeySource

        RandomKeySource.from_settings()

        if getattr(self, "_initialized", False):
            return

        if get_engine_setting("OBSERVABILITY_ENABLED"):
            from core.instrumentation import setup_opentelemetry

            setup_opentelemetry()

        if get_engine_setting("REGISTER_EVENT_HANDLERS"):
            from core.infrastructure.event_handlers import register_event_handlers

            register_event_handlers()

        self._initialized = True
        logger.info("Key inventory service ready")
