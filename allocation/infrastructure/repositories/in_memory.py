"""
In-memory implementations of the allocation repositories.

Used by unit tests and single-process tooling. Every mutation registers
an undo action with the active compensation journal, which gives
``InMemoryUnitOfWork.atomic()`` its all-or-nothing behavior.
"""
import threading
import uuid
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from allocation.domain.assigned_key import AssignedKey
from allocation.domain.credit_account import CreditAccount
from allocation.domain.generation_batch import GenerationBatch
from allocation.domain.ledger_entry import LedgerEntry
from allocation.ports.assigned_key_repository import AssignedKeyRepository
from allocation.ports.credit_account_repository import CreditAccountRepository
from allocation.ports.generation_batch_repository import GenerationBatchRepository
from allocation.ports.ledger_repository import LedgerRepository
from core.domain.exceptions import (
    DuplicateIdempotencyKeyError,
    InvalidCreditAmountError,
    StorageFailure,
)
from core.domain.value_objects import KeyClass, KeyStatus
from core.infrastructure.journal import record_compensation


class InMemoryAssignedKeyRepository(AssignedKeyRepository):
    """In-memory AssignedKeyRepository."""

    def __init__(self):
        self._lock = threading.RLock()
        # Insertion ordered, so batch keys keep their draw order
        self._keys: Dict[uuid.UUID, AssignedKey] = {}
        self._values: set = set()
        self._pool_entries: set = set()

    def add_many(self, keys: List[AssignedKey]) -> List[AssignedKey]:
        keys = list(keys)
        with self._lock:
            values = [key.value for key in keys]
            entries = [key.pool_entry_id for key in keys]
            if (
                len(set(values)) != len(values)
                or len(set(entries)) != len(entries)
                or self._values.intersection(values)
                or self._pool_entries.intersection(entries)
            ):
                raise StorageFailure("Key value or pool entry is already assigned")
            for key in keys:
                self._keys[key.id] = key
            self._values.update(values)
            self._pool_entries.update(entries)
        record_compensation(lambda: self._remove(keys))
        return keys

    def _remove(self, keys: List[AssignedKey]) -> None:
        with self._lock:
            for key in keys:
                self._keys.pop(key.id, None)
                self._values.discard(key.value)
                self._pool_entries.discard(key.pool_entry_id)

    def _restore(self, originals: List[AssignedKey]) -> None:
        with self._lock:
            for original in originals:
                self._keys[original.id] = original

    def find_by_id(self, key_id: uuid.UUID) -> Optional[AssignedKey]:
        with self._lock:
            return self._keys.get(key_id)

    def find_by_ids(self, key_ids: Iterable[uuid.UUID]) -> List[AssignedKey]:
        with self._lock:
            return [self._keys[key_id] for key_id in key_ids if key_id in self._keys]

    def find_by_batch(self, batch_id: uuid.UUID) -> List[AssignedKey]:
        with self._lock:
            return [key for key in self._keys.values() if key.batch_id == batch_id]

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
        with self._lock:
            matches = [
                key
                for key in self._keys.values()
                if key.principal_id == principal_id
                and (key_class is None or key.key_class == key_class)
                and (batch_id is None or key.batch_id == batch_id)
                and (
                    key.status == status
                    if status is not None
                    else include_revoked or not key.is_revoked
                )
            ]
        # Stable sort keeps draw order within a batch
        matches.sort(key=lambda key: key.assigned_at, reverse=True)
        return matches[offset : offset + limit], len(matches)

    def transition(self, key: AssignedKey, expected_status: KeyStatus) -> bool:
        with self._lock:
            current = self._keys.get(key.id)
            if current is None or current.status != expected_status:
                return False
            self._keys[key.id] = key
        record_compensation(lambda: self._restore([current]))
        return True

    def revoke_many(self, key_ids: Iterable[uuid.UUID], revoked_at: datetime) -> int:
        originals = []
        with self._lock:
            for key_id in key_ids:
                current = self._keys.get(key_id)
                if current is None or current.is_revoked:
                    continue
                self._keys[key_id] = current.revoke(revoked_at)
                originals.append(current)
        if originals:
            record_compensation(lambda: self._restore(originals))
        return len(originals)

    def count_grouped(
        self, principal_id: Optional[str] = None
    ) -> Dict[Tuple[KeyClass, KeyStatus], int]:
        counts: Dict[Tuple[KeyClass, KeyStatus], int] = defaultdict(int)
        with self._lock:
            for key in self._keys.values():
                if principal_id is None or key.principal_id == principal_id:
                    counts[(key.key_class, key.status)] += 1
        return dict(counts)


class InMemoryGenerationBatchRepository(GenerationBatchRepository):
    """In-memory GenerationBatchRepository."""

    def __init__(self):
        self._lock = threading.RLock()
        self._batches: Dict[uuid.UUID, GenerationBatch] = {}
        self._by_idempotency_key: Dict[Tuple[str, str], uuid.UUID] = {}

    def add(self, batch: GenerationBatch) -> GenerationBatch:
        stored = batch.with_keys(())
        idempotency = (batch.principal_id, batch.idempotency_key)
        with self._lock:
            if batch.id in self._batches:
                raise StorageFailure(f"Batch {batch.id} already exists")
            if batch.idempotency_key is not None:
                if idempotency in self._by_idempotency_key:
                    raise DuplicateIdempotencyKeyError()
                self._by_idempotency_key[idempotency] = batch.id
            self._batches[batch.id] = stored
        record_compensation(lambda: self._remove(stored))
        return stored

    def _remove(self, batch: GenerationBatch) -> None:
        with self._lock:
            self._batches.pop(batch.id, None)
            if batch.idempotency_key is not None:
                self._by_idempotency_key.pop((batch.principal_id, batch.idempotency_key), None)

    def find_by_id(self, batch_id: uuid.UUID) -> Optional[GenerationBatch]:
        with self._lock:
            return self._batches.get(batch_id)

    def find_by_idempotency_key(
        self, principal_id: str, idempotency_key: str
    ) -> Optional[GenerationBatch]:
        with self._lock:
            batch_id = self._by_idempotency_key.get((principal_id, idempotency_key))
            return self._batches.get(batch_id) if batch_id else None

    def list_for_principal(
        self,
        principal_id: str,
        key_class: Optional[KeyClass] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> Tuple[List[GenerationBatch], int]:
        with self._lock:
            matches = [
                batch
                for batch in self._batches.values()
                if batch.principal_id == principal_id
                and (key_class is None or batch.key_class == key_class)
            ]
        matches.sort(key=lambda batch: batch.created_at, reverse=True)
        return matches[offset : offset + limit], len(matches)


class InMemoryCreditAccountRepository(CreditAccountRepository):
    """In-memory CreditAccountRepository."""

    def __init__(self):
        self._lock = threading.RLock()
        self._accounts: Dict[str, CreditAccount] = {}

    def _adjust(
        self,
        principal_id: str,
        balance: int = 0,
        lifetime_assigned: int = 0,
        keys_generated: int = 0,
    ) -> None:
        with self._lock:
            account = self._accounts[principal_id]
            self._accounts[principal_id] = replace(
                account,
                balance=account.balance + balance,
                lifetime_assigned=account.lifetime_assigned + lifetime_assigned,
                keys_generated=account.keys_generated + keys_generated,
            )

    def find(self, principal_id: str) -> Optional[CreditAccount]:
        principal_id = str(principal_id)
        with self._lock:
            return self._accounts.get(principal_id)

    def get_or_create(self, principal_id: str) -> CreditAccount:
        principal_id = str(principal_id)
        with self._lock:
            account = self._accounts.get(principal_id)
            if account is not None:
                return account
            account = CreditAccount.create(principal_id)
            self._accounts[principal_id] = account
        record_compensation(lambda: self._discard(principal_id))
        return account

    def _discard(self, principal_id: str) -> None:
        with self._lock:
            self._accounts.pop(principal_id, None)

    def deposit(self, principal_id: str, amount: int) -> CreditAccount:
        principal_id = str(principal_id)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidCreditAmountError()
        with self._lock:
            self.get_or_create(principal_id)
            self._adjust(principal_id, balance=amount)
            account = self._accounts[principal_id]
        record_compensation(lambda: self._adjust(principal_id, balance=-amount))
        return account

    def debit(self, principal_id: str, cost: int, quantity: int) -> bool:
        principal_id = str(principal_id)
        with self._lock:
            account = self._accounts.get(principal_id)
            if account is None or account.balance < cost:
                return False
            self._adjust(
                principal_id, balance=-cost, lifetime_assigned=quantity, keys_generated=quantity
            )
        record_compensation(
            lambda: self._adjust(
                principal_id, balance=cost, lifetime_assigned=-quantity, keys_generated=-quantity
            )
        )
        return True

    def decrement_keys_generated(self, principal_id: str, count: int) -> None:
        principal_id = str(principal_id)
        if count <= 0:
            return
        with self._lock:
            account = self._accounts.get(principal_id)
            if account is None:
                return
            removed = min(count, account.keys_generated)
            self._adjust(principal_id, keys_generated=-removed)
        record_compensation(lambda: self._adjust(principal_id, keys_generated=removed))


class InMemoryLedgerRepository(LedgerRepository):
    """In-memory LedgerRepository."""

    def __init__(self):
        self._lock = threading.RLock()
        self._entries: List[LedgerEntry] = []

    def append(self, entry: LedgerEntry) -> LedgerEntry:
        with self._lock:
            if any(existing.batch_id == entry.batch_id for existing in self._entries):
                raise StorageFailure(f"Ledger already records batch {entry.batch_id}")
            self._entries.append(entry)
        record_compensation(lambda: self._remove(entry))
        return entry

    def _remove(self, entry: LedgerEntry) -> None:
        with self._lock:
            self._entries = [existing for existing in self._entries if existing.id != entry.id]

    def find_by_batch(self, batch_id: uuid.UUID) -> Optional[LedgerEntry]:
        with self._lock:
            return next((entry for entry in self._entries if entry.batch_id == batch_id), None)

    def list_for_principal(self, principal_id: str) -> List[LedgerEntry]:
        with self._lock:
            entries = [entry for entry in self._entries if entry.principal_id == principal_id]
        return sorted(entries, key=lambda entry: entry.timestamp)

    def all(self) -> List[LedgerEntry]:
        """Every entry, in append order."""
        with self._lock:
            return list(self._entries)
