"""
Unit of work port (interface).

Groups the collaborators an allocation touches and the boundary inside
which their changes commit or roll back together.
"""
from abc import ABC, abstractmethod
from typing import ContextManager

from allocation.ports.assigned_key_repository import AssignedKeyRepository
from allocation.ports.credit_account_repository import CreditAccountRepository
from allocation.ports.generation_batch_repository import GenerationBatchRepository
from allocation.ports.ledger_repository import LedgerRepository
from inventory.ports.key_pool import KeyPool


class UnitOfWork(ABC):
    """
    Transactional boundary over pool, keys, batches, accounts and ledger.

    Usage::

        with uow.atomic():
            uow.key_pool.draw(...)
            uow.accounts.debit(...)

    Leaving the block with an exception undoes every change made inside
    it; blocks may nest.
    """

    key_pool: KeyPool
    assigned_keys: AssignedKeyRepository
    batches: GenerationBatchRepository
    accounts: CreditAccountRepository
    ledger: LedgerRepository

    @abstractmethod
    def atomic(self) -> ContextManager[None]:
        """
        Open an all-or-nothing block.

        Raises:
            StorageFailure: If the storage fails inside the block
        """
