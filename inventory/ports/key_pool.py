"""
KeyPool port (interface).

This defines the contract for the inventory of unassigned keys.
Implementations are in the infrastructure layer.
"""
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from core.domain.value_objects import KeyClass
from inventory.domain.pool_entry import PoolEntry, PoolStats


class KeyPool(ABC):
    """
    Abstract pool of unassigned keys, partitioned by key class.

    Draws are exactly-once: an entry returned by ``draw`` is marked drawn
    through a conditional per-entry transition, so no concurrent draw can
    return it again. Contention is confined to one class at a time.

    Implementations are synchronous; callers that need atomicity across
    several collaborators run them inside a unit of work.
    """

    @abstractmethod
    def draw(
        self,
        key_class: KeyClass,
        quantity: int,
        batch_id: Optional[uuid.UUID] = None,
    ) -> List[PoolEntry]:
        """
        Atomically claim the oldest ``quantity`` available entries.

        Args:
            key_class: Partition to draw from
            quantity: Number of entries, 1 to MAX_DRAW_QUANTITY
            batch_id: Batch the entries are drawn for (a fresh id if omitted)

        Returns:
            Drawn entries in FIFO order (added_at ascending, then id)

        Raises:
            InvalidQuantityError: If quantity is out of range
            InsufficientInventoryError: If fewer entries are available; the
                pool is left unchanged
            StorageFailure: If the claim could not complete
        """

    @abstractmethod
    def add_entries(
        self,
        key_class: KeyClass,
        values: Iterable[str],
        added_at: Optional[datetime] = None,
        skip_duplicates: bool = False,
    ) -> List[PoolEntry]:
        """
        Add key values to a partition.

        Args:
            key_class: Partition receiving the values
            values: Key values; must be unique across the whole system
            added_at: Insertion time shared by the new entries
            skip_duplicates: Silently skip values that already exist
                instead of rejecting the whole call

        Returns:
            Stored entries in insertion order

        Raises:
            DuplicateKeyValueError: If a value exists (or repeats in
                ``values``) and ``skip_duplicates`` is False
        """

    @abstractmethod
    def available_count(self, key_class: KeyClass) -> int:
        """Return how many entries of a class can still be drawn."""

    @abstractmethod
    def stats(self) -> Dict[KeyClass, PoolStats]:
        """Return counters for every key class, including empty ones."""
