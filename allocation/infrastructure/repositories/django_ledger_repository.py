"""
Django implementation of LedgerRepository port.
"""
import uuid
from typing import List, Optional

from allocation.domain.ledger_entry import LedgerEntry
from allocation.infrastructure.models import LedgerEntry as LedgerEntryModel
from allocation.ports.ledger_repository import LedgerRepository


class DjangoLedgerRepository(LedgerRepository):
    """Django ORM implementation of LedgerRepository."""

    def _to_domain(self, model: LedgerEntryModel) -> LedgerEntry:
        return LedgerEntry(
            id=model.id,
            principal_id=model.principal_id,
            batch_id=model.batch_id,
            quantity=model.quantity,
            cost=model.cost,
            timestamp=model.timestamp,
        )

    def append(self, entry: LedgerEntry) -> LedgerEntry:
        LedgerEntryModel(
            id=entry.id,
            principal_id=entry.principal_id,
            batch_id=entry.batch_id,
            quantity=entry.quantity,
            cost=entry.cost,
            timestamp=entry.timestamp,
        ).save(force_insert=True)
        return entry

    def find_by_batch(self, batch_id: uuid.UUID) -> Optional[LedgerEntry]:
        model = LedgerEntryModel.objects.filter(batch_id=batch_id).first()
        return self._to_domain(model) if model else None

    def list_for_principal(self, principal_id: str) -> List[LedgerEntry]:
        models = LedgerEntryModel.objects.filter(principal_id=principal_id).order_by("timestamp")
        return [self._to_domain(model) for model in models]
