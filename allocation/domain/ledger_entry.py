"""
LedgerEntry domain entity.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from core.domain.value_objects import PrincipalId


@dataclass(frozen=True)
class LedgerEntry:
    """Immutable audit record of one successful allocation."""

    id: uuid.UUID
    principal_id: str
    batch_id: uuid.UUID
    quantity: int
    cost: int
    timestamp: datetime

    def __post_init__(self):
        """Validate ledger entry entity."""
        PrincipalId(self.principal_id)
        if self.quantity < 1:
            raise ValueError("Ledger quantity must be positive")
        if self.cost < 0:
            raise ValueError("Ledger cost cannot be negative")

    @classmethod
    def create(
        cls,
        principal_id: str,
        batch_id: uuid.UUID,
        quantity: int,
        cost: int,
        timestamp: Optional[datetime] = None,
    ) -> "LedgerEntry":
        """Record an allocation."""
        return cls(
            id=uuid.uuid4(),
            principal_id=principal_id,
            batch_id=batch_id,
            quantity=quantity,
            cost=cost,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
