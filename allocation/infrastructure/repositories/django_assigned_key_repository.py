"""
Django implementation of AssignedKeyRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from django.db.models import Count

from allocation.domain.assigned_key import AssignedKey
from allocation.infrastructure.models import AssignedKey as AssignedKeyModel
from allocation.ports.assigned_key_repository import AssignedKeyRepository
from core.domain.value_objects import KeyClass, KeyStatus

REVOKED = KeyStatus.REVOKED.value


class DjangoAssignedKeyRepository(AssignedKeyRepository):
    """Django ORM implementation of AssignedKeyRepository."""

    def _to_domain(self, model: AssignedKeyModel) -> AssignedKey:
        """
        Convert Django model to domain entity.

        Args:
            model: Django AssignedKey model

        Returns:
            AssignedKey domain entity
        """
        return AssignedKey(
            id=model.id,
            principal_id=model.principal_id,
            value=model.value,
            key_class=KeyClass(model.key_class),
            status=KeyStatus(model.status),
            batch_id=model.batch_id,
            pool_entry_id=model.pool_entry_id,
            assigned_at=model.assigned_at,
            consumed_at=model.consumed_at,
            revoked_at=model.revoked_at,
        )

    def _to_model(self, key: AssignedKey) -> AssignedKeyModel:
        """
        Convert domain entity to an unsaved Django model.

        Args:
            key: AssignedKey domain entity

        Returns:
            Django AssignedKey model
        """
        return AssignedKeyModel(
            id=key.id,
            principal_id=key.principal_id,
            value=key.value,
            key_class=key.key_class.value,
            status=key.status.value,
            batch_id=key.batch_id,
            pool_entry_id=key.pool_entry_id,
            assigned_at=key.assigned_at,
            consumed_at=key.consumed_at,
            revoked_at=key.revoked_at,
        )

    def _draw_ordered(self, queryset):
        return queryset.order_by("pool_entry__added_at", "pool_entry_id")

    def add_many(self, keys: List[AssignedKey]) -> List[AssignedKey]:
        AssignedKeyModel.objects.bulk_create([self._to_model(key) for key in keys])
        return list(keys)

    def find_by_id(self, key_id: uuid.UUID) -> Optional[AssignedKey]:
        model = AssignedKeyModel.objects.filter(id=key_id).first()
        return self._to_domain(model) if model else None

    def find_by_ids(self, key_ids: Iterable[uuid.UUID]) -> List[AssignedKey]:
        models = AssignedKeyModel.objects.filter(id__in=list(key_ids))
        return [self._to_domain(model) for model in models]

    def find_by_batch(self, batch_id: uuid.UUID) -> List[AssignedKey]:
        models = self._draw_ordered(AssignedKeyModel.objects.filter(batch_id=batch_id))
        return [self._to_domain(model) for model in models]

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
        queryset = AssignedKeyModel.objects.filter(principal_id=principal_id)
        if key_class is not None:
            queryset = queryset.filter(key_class=key_class.value)
        if status is not None:
            queryset = queryset.filter(status=status.value)
        elif not include_revoked:
            queryset = queryset.exclude(status=REVOKED)
        if batch_id is not None:
            queryset = queryset.filter(batch_id=batch_id)

        total = queryset.count()
        page = queryset.order_by("-assigned_at", "pool_entry__added_at", "pool_entry_id")[
            offset : offset + limit
        ]
        return [self._to_domain(model) for model in page], total

    def transition(self, key: AssignedKey, expected_status: KeyStatus) -> bool:
        updated = AssignedKeyModel.objects.filter(id=key.id, status=expected_status.value).update(
            status=key.status.value,
            consumed_at=key.consumed_at,
            revoked_at=key.revoked_at,
        )
        return updated == 1

    def revoke_many(self, key_ids: Iterable[uuid.UUID], revoked_at: datetime) -> int:
        return (
            AssignedKeyModel.objects.filter(id__in=list(key_ids))
            .exclude(status=REVOKED)
            .update(status=REVOKED, revoked_at=revoked_at)
        )

    def count_grouped(
        self, principal_id: Optional[str] = None
    ) -> Dict[Tuple[KeyClass, KeyStatus], int]:
        queryset = AssignedKeyModel.objects.all()
        if principal_id is not None:
            queryset = queryset.filter(principal_id=principal_id)
        rows = queryset.order_by().values("key_class", "status").annotate(total=Count("id"))

        counts: Dict[Tuple[KeyClass, KeyStatus], int] = defaultdict(int)
        for row in rows:
            counts[(KeyClass(row["key_class"]), KeyStatus(row["status"]))] = row["total"]
        return dict(counts)
