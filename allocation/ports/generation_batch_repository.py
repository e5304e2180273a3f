"""
GenerationBatch repository port (interface).
"""
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from allocation.domain.generation_batch import GenerationBatch
from core.domain.value_objects import KeyClass


class GenerationBatchRepository(ABC):
    """Abstract repository for GenerationBatch entities."""

    @abstractmethod
    def add(self, batch: GenerationBatch) -> GenerationBatch:
        """
        Insert a new batch.

        Args:
            batch: GenerationBatch entity (its ``keys`` are not stored here)

        Returns:
            Stored batch without keys

        Raises:
            DuplicateIdempotencyKeyError: If the principal already has a
                batch with the same idempotency key
        """

    @abstractmethod
    def find_by_id(self, batch_id: uuid.UUID) -> Optional[GenerationBatch]:
        """
        Find a batch by ID.

        Returns:
            GenerationBatch entity or None if not found
        """

    @abstractmethod
    def find_by_idempotency_key(
        self, principal_id: str, idempotency_key: str
    ) -> Optional[GenerationBatch]:
        """Find the batch a principal created with an idempotency key."""

    @abstractmethod
    def list_for_principal(
        self,
        principal_id: str,
        key_class: Optional[KeyClass] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> Tuple[List[GenerationBatch], int]:
        """
        Page through a principal's batches, newest first.

        Returns:
            Tuple of (batches on the page, total matching batches)
        """
