"""
AssignedKey domain entity.

An assigned key is a pool value that now belongs to a principal. It is
created exactly once per drawn pool entry and no transition ever brings
it back to ``active``.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from core.domain.exceptions import AlreadyConsumedError, KeyNotActiveError
from core.domain.value_objects import KeyClass, KeyStatus, KeyValue, PrincipalId
from inventory.domain.pool_entry import PoolEntry


@dataclass(frozen=True)
class AssignedKey:
    """
    AssignedKey domain entity.

    Represents a key owned by a principal.
    """

    id: uuid.UUID
    principal_id: str
    value: str
    key_class: KeyClass
    status: KeyStatus
    batch_id: uuid.UUID
    pool_entry_id: int
    assigned_at: datetime
    consumed_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate assigned key entity."""
        PrincipalId(self.principal_id)
        KeyValue(self.value)
        if not self.batch_id:
            raise ValueError("Batch ID is required")
        if self.status == KeyStatus.CONSUMED and self.consumed_at is None:
            raise ValueError("Consumed keys must record when they were consumed")
        if self.status == KeyStatus.REVOKED and self.revoked_at is None:
            raise ValueError("Revoked keys must record when they were revoked")

    @classmethod
    def from_pool_entry(
        cls,
        entry: PoolEntry,
        principal_id: str,
        batch_id: uuid.UUID,
        assigned_at: Optional[datetime] = None,
    ) -> "AssignedKey":
        """
        Create an active key from a drawn pool entry.

        Args:
            entry: Drawn pool entry
            principal_id: New owner
            batch_id: Generation batch the key belongs to
            assigned_at: Assignment time (defaults to now)

        Returns:
            AssignedKey entity instance
        """
        if entry.is_available:
            raise ValueError(f"Pool entry {entry.id} has not been drawn")
        return cls(
            id=uuid.uuid4(),
            principal_id=principal_id,
            value=entry.value,
            key_class=entry.key_class,
            status=KeyStatus.ACTIVE,
            batch_id=batch_id,
            pool_entry_id=entry.id,
            assigned_at=assigned_at or datetime.now(timezone.utc),
        )

    @property
    def is_active(self) -> bool:
        """Check if key can still be used."""
        return self.status == KeyStatus.ACTIVE

    @property
    def is_revoked(self) -> bool:
        """Revoked keys are invisible to their former owner."""
        return self.status == KeyStatus.REVOKED

    def is_owned_by(self, principal_id: str) -> bool:
        """Check ownership."""
        return self.principal_id == str(principal_id)

    def consume(self, at: Optional[datetime] = None) -> "AssignedKey":
        """
        Mark key as used.

        Returns:
            Consumed copy of the key

        Raises:
            AlreadyConsumedError: If key was already consumed
            KeyNotActiveError: If key is expired or revoked
        """
        if self.status == KeyStatus.CONSUMED:
            raise AlreadyConsumedError()
        if not self.is_active:
            raise KeyNotActiveError(f"Key is {self.status.value} and cannot be consumed")
        return replace(
            self, status=KeyStatus.CONSUMED, consumed_at=at or datetime.now(timezone.utc)
        )

    def expire(self) -> "AssignedKey":
        """
        Mark key as expired.

        Raises:
            KeyNotActiveError: If key is not active
        """
        if not self.is_active:
            raise KeyNotActiveError(f"Key is {self.status.value} and cannot expire")
        return replace(self, status=KeyStatus.EXPIRED)

    def revoke(self, at: Optional[datetime] = None) -> "AssignedKey":
        """
        Retire key. Allowed from every status except revoked.

        Raises:
            ValueError: If key is already revoked
        """
        if self.is_revoked:
            raise ValueError("Key is already revoked")
        return replace(
            self, status=KeyStatus.REVOKED, revoked_at=at or datetime.now(timezone.utc)
        )
