"""
Pool administration handlers.

Replenish, import and stats. Pool adapters are synchronous, so each call
runs in a worker thread through ``sync_to_async``.
"""

import logging
from typing import Optional

from asgiref.sync import sync_to_async

from core.domain.value_objects import KeyClass
from core.infrastructure.events import event_bus as default_event_bus
from core.instrumentation import get_tracer
from core.metrics import pool_available_keys, pool_entries_added_total
from inventory.application.commands.replenish_pool import (
    AddPoolEntriesCommand,
    ReplenishPoolCommand,
)
from inventory.application.dto.inventory_dto import (
    PoolOverviewDTO,
    PoolStatsDTO,
    ReplenishResultDTO,
)
from inventory.domain.events import PoolReplenished
from inventory.domain.services import InventoryReplenisher
from inventory.ports.key_pool import KeyPool

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


class ReplenishPoolHandler:
    """Handler for ReplenishPoolCommand."""

    def __init__(self, replenisher: InventoryReplenisher, event_bus=None):
        """Initialize handler with the replenisher."""
        self.replenisher = replenisher
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: ReplenishPoolCommand) -> ReplenishResultDTO:
        """
        Handle replenish pool command.

        Args:
            command: ReplenishPoolCommand

        Returns:
            ReplenishResultDTO with the number of keys added

        Raises:
            InvalidKeyClassError: If the class is unknown
        """
        key_class = KeyClass.parse(command.key_class)
        with tracer.start_as_current_span("replenish_pool") as span:
            span.set_attribute("key_class", key_class.value)
            if command.count is None:
                added = await sync_to_async(self.replenisher.top_up)(key_class)
            else:
                added = await sync_to_async(self.replenisher.replenish)(key_class, command.count)
            available = await sync_to_async(self.replenisher.key_pool.available_count)(key_class)
            span.set_attribute("added", len(added))

        return await _report(self.event_bus, key_class, len(added), available, source="random")


class AddPoolEntriesHandler:
    """Handler for AddPoolEntriesCommand."""

    def __init__(self, key_pool: KeyPool, event_bus=None):
        """Initialize handler with the pool."""
        self.key_pool = key_pool
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: AddPoolEntriesCommand) -> ReplenishResultDTO:
        """
        Handle import command.

        Raises:
            DuplicateKeyValueError: If values exist and duplicates are not skipped
        """
        key_class = KeyClass.parse(command.key_class)
        added = await sync_to_async(self.key_pool.add_entries)(
            key_class, command.values, skip_duplicates=command.skip_duplicates
        )
        available = await sync_to_async(self.key_pool.available_count)(key_class)
        return await _report(self.event_bus, key_class, len(added), available, source="import")


class GetPoolStatsHandler:
    """Handler for pool statistics."""

    def __init__(self, key_pool: KeyPool):
        self.key_pool = key_pool

    async def handle(self, key_class: Optional[str] = None) -> PoolOverviewDTO:
        """
        Return stats for every partition, or for a single one.

        Also refreshes the availability gauge.
        """
        stats = await sync_to_async(self.key_pool.stats)()
        if key_class is not None:
            wanted = KeyClass.parse(key_class)
            stats = {wanted: stats[wanted]}

        items = []
        for cls, item in stats.items():
            pool_available_keys.labels(key_class=cls.value).set(item.available)
            items.append(
                PoolStatsDTO(
                    key_class=cls.value,
                    label=cls.label,
                    total=item.total,
                    available=item.available,
                    drawn=item.drawn,
                )
            )
        return PoolOverviewDTO(
            classes=items,
            total=sum(item.total for item in items),
            available=sum(item.available for item in items),
            drawn=sum(item.drawn for item in items),
        )


async def _report(event_bus, key_class: KeyClass, added: int, available: int, source: str):
    pool_available_keys.labels(key_class=key_class.value).set(available)
    if added:
        pool_entries_added_total.labels(key_class=key_class.value, source=source).inc(added)
        await event_bus.publish(
            PoolReplenished(key_class=key_class, added=added, available=available, source=source)
        )
    logger.info(
        "Pool %s: %d key(s) added from %s, %d available",
        key_class.value,
        added,
        source,
        available,
    )
    return ReplenishResultDTO(key_class=key_class.value, added=added, available=available)
