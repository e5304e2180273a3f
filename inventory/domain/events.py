"""
Inventory domain events.
"""

from datetime import datetime
from typing import Optional

from core.domain.events import DomainEvent
from core.domain.value_objects import KeyClass


class PoolReplenished(DomainEvent):
    """Event raised when entries are added to a pool partition."""

    def __init__(
        self,
        key_class: KeyClass,
        added: int,
        available: int,
        source: str,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize PoolReplenished event.

        Args:
            key_class: Partition that received entries
            added: Number of entries added
            available: Entries available after the insert
            source: Where the values came from ('import', 'random')
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=None,
            occurred_at=occurred_at,
            aggregate_id=key_class.value,
            event_type="PoolReplenished",
        )
        self.key_class = key_class
        self.added = added
        self.available = available
        self.source = source
