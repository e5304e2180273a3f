"""
PoolEntry domain entity.

A pool entry is one unassigned key value waiting in the inventory of a
key class. Entries are never deleted: a drawn entry stays behind as the
record that its value has been handed out.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional, Tuple

from core.domain.value_objects import KeyClass, KeyValue, PoolEntryStatus


@dataclass(frozen=True)
class PoolEntry:
    """
    PoolEntry domain entity.

    ``id`` is assigned by storage and is None until the entry is added.
    """

    id: Optional[int]
    value: str
    key_class: KeyClass
    added_at: datetime
    status: PoolEntryStatus = PoolEntryStatus.AVAILABLE
    drawn_at: Optional[datetime] = None
    drawn_batch_id: Optional[uuid.UUID] = None

    def __post_init__(self):
        """Validate pool entry entity."""
        KeyValue(self.value)
        if not isinstance(self.key_class, KeyClass):
            raise ValueError("Key class is required")
        if self.status == PoolEntryStatus.DRAWN and self.drawn_at is None:
            raise ValueError("Drawn entries must record when they were drawn")

    @classmethod
    def create(
        cls,
        value: str,
        key_class: KeyClass,
        added_at: Optional[datetime] = None,
    ) -> "PoolEntry":
        """
        Create a new, not yet stored, available entry.

        Args:
            value: Key value
            key_class: Pool partition the entry belongs to
            added_at: Insertion time (defaults to now)

        Returns:
            PoolEntry entity instance
        """
        return cls(
            id=None,
            value=value,
            key_class=KeyClass.parse(key_class),
            added_at=added_at or datetime.now(timezone.utc),
        )

    @property
    def is_available(self) -> bool:
        """Check if entry can still be drawn."""
        return self.status == PoolEntryStatus.AVAILABLE

    @property
    def fifo_position(self) -> Tuple[datetime, int]:
        """Draw order: oldest first, ties broken by id."""
        return (self.added_at, self.id or 0)

    def mark_drawn(self, batch_id: uuid.UUID, drawn_at: Optional[datetime] = None) -> "PoolEntry":
        """
        Claim this entry for a batch.

        Args:
            batch_id: Generation batch that receives the value
            drawn_at: Claim time (defaults to now)

        Returns:
            Drawn copy of the entry

        Raises:
            ValueError: If the entry was already drawn
        """
        if not self.is_available:
            raise ValueError(f"Pool entry {self.id} was already drawn")
        return replace(
            self,
            status=PoolEntryStatus.DRAWN,
            drawn_at=drawn_at or datetime.now(timezone.utc),
            drawn_batch_id=batch_id,
        )


@dataclass(frozen=True)
class PoolStats:
    """Inventory counters for one key class."""

    key_class: KeyClass
    total: int
    available: int
    drawn: int

    @classmethod
    def empty(cls, key_class: KeyClass) -> "PoolStats":
        """Stats for a partition with no entries."""
        return cls(key_class=key_class, total=0, available=0, drawn=0)
