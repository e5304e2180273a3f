"""
Event handlers for domain events.

These handlers process domain events after commit for side effects like
audit logging and pool top-ups.
"""

import logging

from allocation.domain.events import (
    BatchRevoked,
    KeyConsumed,
    KeyExpired,
    KeysAllocated,
    KeysRevoked,
)
from core.config import get_engine_setting
from core.domain.events import DomainEvent, EventHandler
from inventory.domain.events import PoolReplenished

logger = logging.getLogger(__name__)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes every domain event to the structured log.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={
                "event_id": str(event.event_id),
                "event_type": event.event_type,
                "aggregate_id": event.aggregate_id,
                "occurred_at": event.occurred_at.isoformat(),
                "payload": event.payload(),
            },
        )


class PoolTopUpHandler(EventHandler):
    """
    Enqueues a pool top-up after keys of a class have been allocated.

    The task itself checks the low watermark, so enqueuing is cheap.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle KeysAllocated by scheduling a replenish task.

        Args:
            event: KeysAllocated event
        """
        from core.tasks import replenish_pool_task

        replenish_pool_task.delay(event.key_class.value)
        logger.debug("Scheduled top-up check for %s pool", event.key_class.value)


def register_event_handlers(event_bus=None):
    """Register all event handlers with the event bus."""
    if event_bus is None:
        from core.infrastructure.events import event_bus

    audit_handler = AuditLogEventHandler()
    audited = (
        KeysAllocated,
        BatchRevoked,
        KeysRevoked,
        KeyConsumed,
        KeyExpired,
        PoolReplenished,
    )
    for event_type in audited:
        event_bus.subscribe(event_type, audit_handler)

    if get_engine_setting("AUTO_REPLENISH"):
        event_bus.subscribe(KeysAllocated, PoolTopUpHandler())

    logger.info("Event handlers registered")
