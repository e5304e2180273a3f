"""
Inventory domain services.
"""

import logging
from typing import List, Optional

from core.config import get_engine_setting
from core.domain.value_objects import KeyClass
from inventory.domain.pool_entry import PoolEntry
from inventory.ports.key_pool import KeyPool
from inventory.ports.key_source import KeySource

logger = logging.getLogger(__name__)


class InventoryReplenisher:
    """Refills pool partitions with freshly generated keys."""

    # Generation rounds per call; random collisions are rare, so hitting
    # this limit means the alphabet/length combination is nearly exhausted.
    MAX_ROUNDS = 10

    def __init__(self, key_pool: KeyPool, key_source: KeySource):
        self.key_pool = key_pool
        self.key_source = key_source

    def replenish(self, key_class: KeyClass, count: int) -> List[PoolEntry]:
        """
        Add ``count`` new unique keys to a partition.

        Values that collide with existing keys are regenerated.

        Args:
            key_class: Partition to refill
            count: Number of keys to add

        Returns:
            Added entries (fewer than ``count`` only if generation kept
            colliding for MAX_ROUNDS rounds)
        """
        key_class = KeyClass.parse(key_class)
        if count <= 0:
            return []

        added: List[PoolEntry] = []
        for _ in range(self.MAX_ROUNDS):
            missing = count - len(added)
            if missing <= 0:
                break
            candidates = self.key_source.generate_many(missing)
            added.extend(
                self.key_pool.add_entries(key_class, candidates, skip_duplicates=True)
            )

        if len(added) < count:
            logger.warning(
                "Replenished only %d of %d %s keys; generated values kept colliding",
                len(added),
                count,
                key_class.value,
            )
        else:
            logger.info("Replenished %d %s keys", len(added), key_class.value)
        return added

    def top_up(
        self,
        key_class: KeyClass,
        low_watermark: Optional[int] = None,
        batch_size: Optional[int] = None,
    ) -> List[PoolEntry]:
        """
        Refill a partition only if it has dropped below its low watermark.

        Args:
            key_class: Partition to check
            low_watermark: Threshold (defaults to ``LOW_WATERMARK``)
            batch_size: Minimum keys to add (defaults to ``REPLENISH_BATCH_SIZE``)

        Returns:
            Added entries; empty if the partition was above the watermark
        """
        key_class = KeyClass.parse(key_class)
        if low_watermark is None:
            low_watermark = get_engine_setting("LOW_WATERMARK")
        if batch_size is None:
            batch_size = get_engine_setting("REPLENISH_BATCH_SIZE")

        available = self.key_pool.available_count(key_class)
        if available >= low_watermark:
            return []
        return self.replenish(key_class, max(batch_size, low_watermark - available))
