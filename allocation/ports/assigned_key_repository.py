"""
AssignedKey repository port (interface).

This defines the contract for assigned key persistence operations.
Implementations are in the infrastructure layer.
"""
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from allocation.domain.assigned_key import AssignedKey
from core.domain.value_objects import KeyClass, KeyStatus


class AssignedKeyRepository(ABC):
    """
    Abstract repository for AssignedKey entities.

    Status changes are conditional on the current status so that two
    concurrent transitions of one key cannot both succeed.
    """

    @abstractmethod
    def add_many(self, keys: List[AssignedKey]) -> List[AssignedKey]:
        """
        Insert new keys.

        Raises:
            StorageFailure: If a value or pool entry is already assigned
        """

    @abstractmethod
    def find_by_id(self, key_id: uuid.UUID) -> Optional[AssignedKey]:
        """
        Find a key by ID.

        Args:
            key_id: AssignedKey UUID

        Returns:
            AssignedKey entity or None if not found
        """

    @abstractmethod
    def find_by_ids(self, key_ids: Iterable[uuid.UUID]) -> List[AssignedKey]:
        """Find every existing key among ``key_ids``."""

    @abstractmethod
    def find_by_batch(self, batch_id: uuid.UUID) -> List[AssignedKey]:
        """Keys of a batch, in draw order."""

    @abstractmethod
    def list_for_principal(
        self,
        principal_id: str,
        key_class: Optional[KeyClass] = None,
        status: Optional[KeyStatus] = None,
        batch_id: Optional[uuid.UUID] = None,
        include_revoked: bool = False,
        offset: int = 0,
        limit: int = 100,
    ) -> Tuple[List[AssignedKey], int]:
        """
        Page through a principal's keys, newest first.

        Revoked keys are left out unless ``include_revoked`` is set or
        ``status`` asks for them.

        Returns:
            Tuple of (keys on the page, total matching keys)
        """

    @abstractmethod
    def transition(self, key: AssignedKey, expected_status: KeyStatus) -> bool:
        """
        Persist a status change if the stored status is still ``expected_status``.

        Returns:
            True if the stored key was updated
        """

    @abstractmethod
    def revoke_many(self, key_ids: Iterable[uuid.UUID], revoked_at: datetime) -> int:
        """
        Revoke every listed key that is not revoked yet.

        Returns:
            Number of keys actually revoked
        """

    @abstractmethod
    def count_grouped(
        self, principal_id: Optional[str] = None
    ) -> Dict[Tuple[KeyClass, KeyStatus], int]:
        """Count keys per (class, status), for one principal or everyone."""
