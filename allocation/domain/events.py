"""
Allocation domain events.

Published by application handlers after the unit of work has committed.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from core.domain.events import DomainEvent
from core.domain.value_objects import KeyClass


class KeysAllocated(DomainEvent):
    """Event raised when a batch of keys is assigned to a principal."""

    def __init__(
        self,
        batch_id: uuid.UUID,
        principal_id: str,
        key_class: KeyClass,
        quantity: int,
        cost: int,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize KeysAllocated event.

        Args:
            batch_id: Generation batch UUID
            principal_id: Owner of the keys
            key_class: Class of the keys
            quantity: Number of keys
            cost: Credits debited
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=None,
            occurred_at=occurred_at,
            aggregate_id=str(batch_id),
            event_type="KeysAllocated",
        )
        self.batch_id = batch_id
        self.principal_id = principal_id
        self.key_class = key_class
        self.quantity = quantity
        self.cost = cost


class BatchRevoked(DomainEvent):
    """Event raised when every live key of a batch is revoked."""

    def __init__(
        self,
        batch_id: uuid.UUID,
        principal_id: str,
        revoked_count: int,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=None,
            occurred_at=occurred_at,
            aggregate_id=str(batch_id),
            event_type="BatchRevoked",
        )
        self.batch_id = batch_id
        self.principal_id = principal_id
        self.revoked_count = revoked_count


class KeysRevoked(DomainEvent):
    """Event raised when individual keys are revoked."""

    def __init__(
        self,
        principal_id: str,
        key_ids: List[uuid.UUID],
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=None,
            occurred_at=occurred_at,
            aggregate_id=principal_id,
            event_type="KeysRevoked",
        )
        self.principal_id = principal_id
        self.key_ids = list(key_ids)


class KeyConsumed(DomainEvent):
    """Event raised when a key is marked as used."""

    def __init__(
        self,
        key_id: uuid.UUID,
        principal_id: str,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=None,
            occurred_at=occurred_at,
            aggregate_id=str(key_id),
            event_type="KeyConsumed",
        )
        self.key_id = key_id
        self.principal_id = principal_id


class KeyExpired(DomainEvent):
    """Event raised when a key is reported as expired."""

    def __init__(
        self,
        key_id: uuid.UUID,
        principal_id: str,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=None,
            occurred_at=occurred_at,
            aggregate_id=str(key_id),
            event_type="KeyExpired",
        )
        self.key_id = key_id
        self.principal_id = principal_id
