"""
Django implementation of CreditAccountRepository port.

Every balance change is a single UPDATE with F() expressions, so
concurrent requests never overwrite each other's changes.
"""
from typing import Optional

from django.db.models import F, Value
from django.db.models.functions import Greatest
from django.utils import timezone

from allocation.domain.credit_account import CreditAccount
from allocation.infrastructure.models import CreditAccount as CreditAccountModel
from allocation.ports.credit_account_repository import CreditAccountRepository
from core.domain.exceptions import InvalidCreditAmountError


class DjangoCreditAccountRepository(CreditAccountRepository):
    """Django ORM implementation of CreditAccountRepository."""

    def _to_domain(self, model: CreditAccountModel) -> CreditAccount:
        return CreditAccount(
            principal_id=model.principal_id,
            balance=model.balance,
            lifetime_assigned=model.lifetime_assigned,
            keys_generated=model.keys_generated,
        )

    def find(self, principal_id: str) -> Optional[CreditAccount]:
        model = CreditAccountModel.objects.filter(principal_id=principal_id).first()
        return self._to_domain(model) if model else None

    def get_or_create(self, principal_id: str) -> CreditAccount:
        model, _ = CreditAccountModel.objects.get_or_create(principal_id=principal_id)
        return self._to_domain(model)

    def deposit(self, principal_id: str, amount: int) -> CreditAccount:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidCreditAmountError()
        CreditAccountModel.objects.get_or_create(principal_id=principal_id)
        CreditAccountModel.objects.filter(principal_id=principal_id).update(
            balance=F("balance") + amount,
            updated_at=timezone.now(),
        )
        return self.find(principal_id)

    def debit(self, principal_id: str, cost: int, quantity: int) -> bool:
        updated = CreditAccountModel.objects.filter(
            principal_id=principal_id, balance__gte=cost
        ).update(
            balance=F("balance") - cost,
            lifetime_assigned=F("lifetime_assigned") + quantity,
            keys_generated=F("keys_generated") + quantity,
            updated_at=timezone.now(),
        )
        return updated == 1

    def decrement_keys_generated(self, principal_id: str, count: int) -> None:
        if count <= 0:
            return
        CreditAccountModel.objects.filter(principal_id=principal_id).update(
            keys_generated=Greatest(F("keys_generated") - count, Value(0)),
            updated_at=timezone.now(),
        )
