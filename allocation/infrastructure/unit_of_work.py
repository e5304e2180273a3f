"""
Unit of work implementations.

``DjangoUnitOfWork`` maps the boundary onto ``transaction.atomic()``;
``InMemoryUnitOfWork`` onto a compensation journal.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from django.db import DatabaseError, transaction

from allocation.infrastructure.repositories.django_assigned_key_repository import (
    DjangoAssignedKeyRepository,
)
from allocation.infrastructure.repositories.django_credit_account_repository import (
    DjangoCreditAccountRepository,
)
from allocation.infrastructure.repositories.django_generation_batch_repository import (
    DjangoGenerationBatchRepository,
)
from allocation.infrastructure.repositories.django_ledger_repository import (
    DjangoLedgerRepository,
)
from allocation.infrastructure.repositories.in_memory import (
    InMemoryAssignedKeyRepository,
    InMemoryCreditAccountRepository,
    InMemoryGenerationBatchRepository,
    InMemoryLedgerRepository,
)
from allocation.ports.assigned_key_repository import AssignedKeyRepository
from allocation.ports.credit_account_repository import CreditAccountRepository
from allocation.ports.generation_batch_repository import GenerationBatchRepository
from allocation.ports.ledger_repository import LedgerRepository
from allocation.ports.unit_of_work import UnitOfWork
from core.domain.exceptions import StorageFailure
from core.infrastructure.journal import compensating
from inventory.infrastructure.repositories.django_key_pool import DjangoKeyPool
from inventory.infrastructure.repositories.in_memory_key_pool import InMemoryKeyPool
from inventory.ports.key_pool import KeyPool

logger = logging.getLogger(__name__)


class DjangoUnitOfWork(UnitOfWork):
    """Unit of work backed by one database transaction."""

    def __init__(
        self,
        key_pool: Optional[KeyPool] = None,
        assigned_keys: Optional[AssignedKeyRepository] = None,
        batches: Optional[GenerationBatchRepository] = None,
        accounts: Optional[CreditAccountRepository] = None,
        ledger: Optional[LedgerRepository] = None,
        using: Optional[str] = None,
    ):
        self.key_pool = key_pool or DjangoKeyPool()
        self.assigned_keys = assigned_keys or DjangoAssignedKeyRepository()
        self.batches = batches or DjangoGenerationBatchRepository()
        self.accounts = accounts or DjangoCreditAccountRepository()
        self.ledger = ledger or DjangoLedgerRepository()
        self.using = using

    @contextmanager
    def atomic(self) -> Iterator[None]:
        try:
            with transaction.atomic(using=self.using):
                yield
        except DatabaseError as exc:
            logger.error("Database error inside unit of work: %s", exc, exc_info=True)
            raise StorageFailure("Storage operation failed") from exc


class InMemoryUnitOfWork(UnitOfWork):
    """Unit of work over in-memory adapters."""

    def __init__(
        self,
        key_pool: Optional[KeyPool] = None,
        assigned_keys: Optional[AssignedKeyRepository] = None,
        batches: Optional[GenerationBatchRepository] = None,
        accounts: Optional[CreditAccountRepository] = None,
        ledger: Optional[LedgerRepository] = None,
    ):
        self.key_pool = key_pool or InMemoryKeyPool()
        self.assigned_keys = assigned_keys or InMemoryAssignedKeyRepository()
        self.batches = batches or InMemoryGenerationBatchRepository()
        self.accounts = accounts or InMemoryCreditAccountRepository()
        self.ledger = ledger or InMemoryLedgerRepository()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with compensating():
            yield
