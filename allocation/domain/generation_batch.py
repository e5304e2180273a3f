"""
GenerationBatch domain entity.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple

from allocation.domain.assigned_key import AssignedKey
from core.domain.value_objects import KeyClass, PrincipalId, validate_quantity


def make_batch_label(key_class: KeyClass, created_at: datetime) -> str:
    """Human readable batch name, e.g. 'Week Keys - 2024-05-01'."""
    return f"{key_class.label} Keys - {created_at:%Y-%m-%d}"


@dataclass(frozen=True)
class GenerationBatch:
    """
    GenerationBatch domain entity.

    Groups the keys produced by one allocation call. ``keys`` is populated
    only on batches returned to callers; storage keeps keys separately.
    ``replayed`` marks a batch returned for a repeated idempotency key.
    """

    id: uuid.UUID
    principal_id: str
    key_class: KeyClass
    label: str
    created_at: datetime
    size: int
    idempotency_key: Optional[str] = None
    keys: Tuple[AssignedKey, ...] = field(default=(), compare=False)
    replayed: bool = field(default=False, compare=False)

    def __post_init__(self):
        """Validate generation batch entity."""
        PrincipalId(self.principal_id)
        if self.size < 1:
            raise ValueError("Batch size must be positive")
        if self.idempotency_key is not None and not self.idempotency_key.strip():
            raise ValueError("Idempotency key cannot be blank")
        if self.idempotency_key is not None and len(self.idempotency_key) > 255:
            raise ValueError("Idempotency key too long")

    @classmethod
    def create(
        cls,
        principal_id: str,
        key_class: KeyClass,
        size: int,
        idempotency_key: Optional[str] = None,
        batch_id: Optional[uuid.UUID] = None,
        created_at: Optional[datetime] = None,
    ) -> "GenerationBatch":
        """
        Create a new GenerationBatch entity.

        Args:
            principal_id: Owner of the batch
            key_class: Class of every key in the batch
            size: Number of keys
            idempotency_key: Optional client supplied request key
            batch_id: Optional UUID (generated if not provided)
            created_at: Creation time (defaults to now)

        Returns:
            GenerationBatch entity instance
        """
        key_class = KeyClass.parse(key_class)
        created_at = created_at or datetime.now(timezone.utc)
        return cls(
            id=batch_id or uuid.uuid4(),
            principal_id=principal_id,
            key_class=key_class,
            label=make_batch_label(key_class, created_at),
            created_at=created_at,
            size=validate_quantity(size),
            idempotency_key=idempotency_key,
        )

    def with_keys(self, keys: Iterable[AssignedKey]) -> "GenerationBatch":
        """Return a copy carrying its keys."""
        return replace(self, keys=tuple(keys))

    def as_replay(self) -> "GenerationBatch":
        """Return a copy flagged as an idempotent replay."""
        return replace(self, replayed=True)

    def matches_request(self, key_class: KeyClass, quantity: int) -> bool:
        """Check if a repeated request asks for the same thing."""
        return self.key_class == key_class and self.size == quantity
