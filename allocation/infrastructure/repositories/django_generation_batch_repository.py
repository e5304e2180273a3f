"""
Django implementation of GenerationBatchRepository port.
"""
import uuid
from typing import List, Optional, Tuple

from django.db import IntegrityError, transaction

from allocation.domain.generation_batch import GenerationBatch
from allocation.infrastructure.models import GenerationBatch as GenerationBatchModel
from allocation.ports.generation_batch_repository import GenerationBatchRepository
from core.domain.exceptions import DuplicateIdempotencyKeyError
from core.domain.value_objects import KeyClass


class DjangoGenerationBatchRepository(GenerationBatchRepository):
    """Django ORM implementation of GenerationBatchRepository."""

    def _to_domain(self, model: GenerationBatchModel) -> GenerationBatch:
        """
        Convert Django model to domain entity.

        Args:
            model: Django GenerationBatch model

        Returns:
            GenerationBatch domain entity
        """
        return GenerationBatch(
            id=model.id,
            principal_id=model.principal_id,
            key_class=KeyClass(model.key_class),
            label=model.label,
            created_at=model.created_at,
            size=model.size,
            idempotency_key=model.idempotency_key,
        )

    def add(self, batch: GenerationBatch) -> GenerationBatch:
        try:
            # Savepoint so a unique violation leaves the outer transaction usable
            with transaction.atomic():
                GenerationBatchModel.objects.create(
                    id=batch.id,
                    principal_id=batch.principal_id,
                    key_class=batch.key_class.value,
                    label=batch.label,
                    size=batch.size,
                    idempotency_key=batch.idempotency_key,
                    created_at=batch.created_at,
                )
        except IntegrityError as exc:
            if batch.idempotency_key is not None and GenerationBatchModel.objects.filter(
                principal_id=batch.principal_id, idempotency_key=batch.idempotency_key
            ).exists():
                raise DuplicateIdempotencyKeyError() from exc
            raise
        return batch.with_keys(())

    def find_by_id(self, batch_id: uuid.UUID) -> Optional[GenerationBatch]:
        model = GenerationBatchModel.objects.filter(id=batch_id).first()
        return self._to_domain(model) if model else None

    def find_by_idempotency_key(
        self, principal_id: str, idempotency_key: str
    ) -> Optional[GenerationBatch]:
        model = GenerationBatchModel.objects.filter(
            principal_id=principal_id, idempotency_key=idempotency_key
        ).first()
        return self._to_domain(model) if model else None

    def list_for_principal(
        self,
        principal_id: str,
        key_class: Optional[KeyClass] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> Tuple[List[GenerationBatch], int]:
        queryset = GenerationBatchModel.objects.filter(principal_id=principal_id)
        if key_class is not None:
            queryset = queryset.filter(key_class=key_class.value)
        total = queryset.count()
        page = queryset.order_by("-created_at", "id")[offset : offset + limit]
        return [self._to_domain(model) for model in page], total
