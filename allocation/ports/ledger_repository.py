"""
Ledger repository port (interface).
"""
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from allocation.domain.ledger_entry import LedgerEntry


class LedgerRepository(ABC):
    """Append-only store of allocation records."""

    @abstractmethod
    def append(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Append an entry.

        Raises:
            StorageFailure: If the entry cannot be written
        """

    @abstractmethod
    def find_by_batch(self, batch_id: uuid.UUID) -> Optional[LedgerEntry]:
        """Return the entry recorded for a batch."""

    @abstractmethod
    def list_for_principal(self, principal_id: str) -> List[LedgerEntry]:
        """Entries of a principal, oldest first."""
