"""
Django implementation of KeyPool port.

Draws claim rows with a conditional UPDATE (``status='available'`` in the
WHERE clause) so two transactions can never both claim the same row. A
round that loses a race to another draw simply selects fresh candidates
and tries again.
"""
import logging
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone

from core.config import get_engine_setting
from core.domain.exceptions import (
    DuplicateKeyValueError,
    InsufficientInventoryError,
    StorageFailure,
)
from core.domain.value_objects import KeyClass, KeyValue, PoolEntryStatus, validate_quantity
from core.metrics import pool_draw_contention_total
from inventory.domain.pool_entry import PoolEntry, PoolStats
from inventory.infrastructure.models import PoolEntry as PoolEntryModel
from inventory.ports.key_pool import KeyPool

logger = logging.getLogger(__name__)

AVAILABLE = PoolEntryStatus.AVAILABLE.value
DRAWN = PoolEntryStatus.DRAWN.value


class DjangoKeyPool(KeyPool):
    """
    Django ORM implementation of KeyPool.

    Every method opens ``transaction.atomic()``; inside an outer unit of
    work that becomes a savepoint, so a failed draw rolls back only its
    own claims.
    """

    def _to_domain(self, model: PoolEntryModel) -> PoolEntry:
        """
        Convert Django model to domain entity.

        Args:
            model: Django PoolEntry model

        Returns:
            PoolEntry domain entity
        """
        return PoolEntry(
            id=model.id,
            value=model.value,
            key_class=KeyClass(model.key_class),
            added_at=model.added_at,
            status=PoolEntryStatus(model.status),
            drawn_at=model.drawn_at,
            drawn_batch_id=model.drawn_batch_id,
        )

    def _select_candidates(self, key_class: KeyClass, limit: int) -> List[int]:
        """Ids of the oldest available entries of a class."""
        return list(
            PoolEntryModel.objects.filter(key_class=key_class.value, status=AVAILABLE)
            .order_by("added_at", "id")
            .values_list("id", flat=True)[:limit]
        )

    def _claim(self, candidate_ids: List[int], batch_id: uuid.UUID, drawn_at: datetime) -> int:
        """Flip still-available candidates to drawn; returns rows won."""
        return PoolEntryModel.objects.filter(id__in=candidate_ids, status=AVAILABLE).update(
            status=DRAWN,
            drawn_at=drawn_at,
            drawn_batch_id=batch_id,
        )

    def draw(
        self,
        key_class: KeyClass,
        quantity: int,
        batch_id: Optional[uuid.UUID] = None,
    ) -> List[PoolEntry]:
        validate_quantity(quantity)
        key_class = KeyClass.parse(key_class)
        batch_id = batch_id or uuid.uuid4()
        max_attempts = get_engine_setting("DRAW_MAX_ATTEMPTS")
        drawn_at = timezone.now()

        with transaction.atomic():
            claimed = 0
            for attempt in range(max_attempts):
                needed = quantity - claimed
                candidate_ids = self._select_candidates(key_class, needed)
                if len(candidate_ids) < needed:
                    raise InsufficientInventoryError(
                        requested=quantity,
                        available=claimed + len(candidate_ids),
                        key_class=key_class.value,
                    )
                won = self._claim(candidate_ids, batch_id, drawn_at)
                claimed += won
                if claimed == quantity:
                    break
                pool_draw_contention_total.labels(key_class=key_class.value).inc()
                logger.debug(
                    "Draw round %d for %s lost %d of %d candidate(s)",
                    attempt + 1,
                    key_class.value,
                    needed - won,
                    needed,
                )
            else:
                raise StorageFailure(
                    f"Pool contention: could not claim {quantity} {key_class.value} keys "
                    f"after {max_attempts} attempts",
                    code="POOL_CONTENTION",
                )

            models = PoolEntryModel.objects.filter(drawn_batch_id=batch_id).order_by(
                "added_at", "id"
            )
            return [self._to_domain(model) for model in models]

    def add_entries(
        self,
        key_class: KeyClass,
        values: Iterable[str],
        added_at: Optional[datetime] = None,
        skip_duplicates: bool = False,
    ) -> List[PoolEntry]:
        key_class = KeyClass.parse(key_class)
        values = [str(KeyValue(value)) for value in values]
        added_at = added_at or timezone.now()

        fresh = []
        duplicates = []
        seen = set()
        for value in values:
            if value in seen:
                duplicates.append(value)
            else:
                seen.add(value)
                fresh.append(value)

        try:
            with transaction.atomic():
                existing = set(
                    PoolEntryModel.objects.filter(value__in=fresh).values_list("value", flat=True)
                )
                if existing:
                    duplicates.extend(existing)
                    fresh = [value for value in fresh if value not in existing]
                if duplicates and not skip_duplicates:
                    raise DuplicateKeyValueError(duplicates)

                PoolEntryModel.objects.bulk_create(
                    [
                        PoolEntryModel(value=value, key_class=key_class.value, added_at=added_at)
                        for value in fresh
                    ]
                )
                stored = PoolEntryModel.objects.filter(value__in=fresh).order_by("id")
                return [self._to_domain(model) for model in stored]
        except IntegrityError as exc:
            # A concurrent import inserted one of the values first
            raise DuplicateKeyValueError(fresh) from exc

    def available_count(self, key_class: KeyClass) -> int:
        key_class = KeyClass.parse(key_class)
        return PoolEntryModel.objects.filter(key_class=key_class.value, status=AVAILABLE).count()

    def stats(self) -> Dict[KeyClass, PoolStats]:
        counts: Dict[KeyClass, Dict[str, int]] = {key_class: {} for key_class in KeyClass}
        rows = (
            PoolEntryModel.objects.order_by()
            .values("key_class", "status")
            .annotate(total=Count("id"))
        )
        for row in rows:
            counts[KeyClass(row["key_class"])][row["status"]] = row["total"]

        result = {}
        for key_class, by_status in counts.items():
            available = by_status.get(AVAILABLE, 0)
            drawn = by_status.get(DRAWN, 0)
            result[key_class] = PoolStats(
                key_class=key_class,
                total=available + drawn,
                available=available,
                drawn=drawn,
            )
        return result
