"""
Allocation domain services.

Domain services contain business logic that spans several aggregates:
turning credits into keys, and retiring keys again.

Both services are synchronous and run their whole flow inside a single
``UnitOfWork.atomic()`` block; application handlers call them from a
worker thread.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from allocation.domain.assigned_key import AssignedKey
from allocation.domain.generation_batch import GenerationBatch
from allocation.domain.ledger_entry import LedgerEntry
from allocation.domain.policy import AllocationPolicy
from allocation.ports.unit_of_work import UnitOfWork
from core.domain.cancellation import CancellationToken
from core.domain.exceptions import (
    AlreadyConsumedError,
    BatchNotFoundError,
    DuplicateIdempotencyKeyError,
    IdempotencyConflictError,
    InsufficientCreditsError,
    KeyNotActiveError,
    KeyNotFoundError,
    StorageFailure,
)
from core.domain.value_objects import KeyClass, KeyStatus, PrincipalId

logger = logging.getLogger(__name__)


class AllocationEngine:
    """
    Converts a principal's credits into assigned keys.

    One call either assigns every requested key, debits the balance,
    and records a ledger entry, or changes nothing at all.
    """

    def __init__(self, unit_of_work: UnitOfWork, policy: Optional[AllocationPolicy] = None):
        self.uow = unit_of_work
        self.policy = policy or AllocationPolicy()

    def allocate(
        self,
        principal_id: str,
        key_class: KeyClass,
        quantity: int,
        idempotency_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> GenerationBatch:
        """
        Assign ``quantity`` keys of ``key_class`` to a principal.

        Args:
            principal_id: Authenticated principal paying for the keys
            key_class: Class to draw from
            quantity: Number of keys, 1 to MAX_DRAW_QUANTITY
            idempotency_key: Optional client request key; a repeated call
                returns the original batch without side effects
            cancellation: Token checked before commit

        Returns:
            GenerationBatch carrying its AssignedKeys

        Raises:
            InvalidQuantityError: If quantity is out of range
            InvalidKeyClassError: If key class is unknown
            InsufficientCreditsError: If the balance is below the cost
            InsufficientInventoryError: If the pool is short
            IdempotencyConflictError: If the idempotency key was used for
                a different request
            StorageFailure: If storage failed or the call was cancelled;
                nothing was committed
        """
        principal_id = str(PrincipalId(principal_id))
        key_class = KeyClass.parse(key_class)
        quantity = self.policy.validate_quantity(quantity)
        cost = self.policy.cost_for(quantity)

        if idempotency_key is not None:
            replay = self._find_replay(principal_id, key_class, quantity, idempotency_key)
            if replay is not None:
                return replay

        try:
            batch = self._allocate_atomically(
                principal_id, key_class, quantity, cost, idempotency_key, cancellation
            )
        except DuplicateIdempotencyKeyError:
            # A concurrent call with the same key committed first
            replay = self._find_replay(principal_id, key_class, quantity, idempotency_key)
            if replay is None:
                raise StorageFailure("Idempotent allocation could not be resolved")
            return replay

        logger.info(
            "Allocated %d %s key(s) to %s in batch %s for %d credit(s)",
            quantity,
            key_class.value,
            principal_id,
            batch.id,
            cost,
        )
        return batch

    def _allocate_atomically(
        self,
        principal_id: str,
        key_class: KeyClass,
        quantity: int,
        cost: int,
        idempotency_key: Optional[str],
        cancellation: Optional[CancellationToken],
    ) -> GenerationBatch:
        uow = self.uow
        with uow.atomic():
            if cancellation is not None:
                cancellation.raise_if_cancelled()

            account = uow.accounts.get_or_create(principal_id)
            if not account.can_afford(cost):
                raise InsufficientCreditsError(required=cost, available=account.balance)

            batch = GenerationBatch.create(
                principal_id=principal_id,
                key_class=key_class,
                size=quantity,
                idempotency_key=idempotency_key,
            )
            entries = uow.key_pool.draw(key_class, quantity, batch_id=batch.id)

            uow.batches.add(batch)
            keys = uow.assigned_keys.add_many(
                [
                    AssignedKey.from_pool_entry(entry, principal_id, batch.id, batch.created_at)
                    for entry in entries
                ]
            )

            if not uow.accounts.debit(principal_id, cost, quantity):
                # Another request spent the balance after our read
                current = uow.accounts.find(principal_id)
                raise InsufficientCreditsError(
                    required=cost, available=current.balance if current else 0
                )

            uow.ledger.append(LedgerEntry.create(principal_id, batch.id, quantity, cost))

            if cancellation is not None:
                cancellation.raise_if_cancelled()

        return batch.with_keys(keys)

    def _find_replay(
        self,
        principal_id: str,
        key_class: KeyClass,
        quantity: int,
        idempotency_key: str,
    ) -> Optional[GenerationBatch]:
        existing = self.uow.batches.find_by_idempotency_key(principal_id, idempotency_key)
        if existing is None:
            return None
        if not existing.matches_request(key_class, quantity):
            raise IdempotencyConflictError(
                f"Idempotency key {idempotency_key!r} was used for "
                f"{existing.size} {existing.key_class.value} key(s)"
            )
        logger.info("Replaying batch %s for idempotency key %r", existing.id, idempotency_key)
        keys = self.uow.assigned_keys.find_by_batch(existing.id)
        return existing.with_keys(keys).as_replay()


class RevocationService:
    """
    Retires assigned keys.

    Revoked keys are neither refunded nor returned to the pool; their
    values stay out of circulation for good. Revocation lowers the
    principal's ``keys_generated`` counter only.

    Keys and batches that do not belong to the caller are reported as not
    found, the same as keys that do not exist or were already revoked.
    """

    def __init__(self, unit_of_work: UnitOfWork):
        self.uow = unit_of_work

    def revoke_batch(self, principal_id: str, batch_id: uuid.UUID) -> int:
        """
        Revoke every live key of a batch.

        Args:
            principal_id: Caller
            batch_id: Generation batch UUID

        Returns:
            Number of keys revoked

        Raises:
            BatchNotFoundError: If the batch does not exist, is not owned by
                the caller, or has no live keys left
        """
        principal_id = str(PrincipalId(principal_id))
        uow = self.uow
        with uow.atomic():
            batch = uow.batches.find_by_id(batch_id)
            if batch is None or batch.principal_id != principal_id:
                raise BatchNotFoundError()

            keys = uow.assigned_keys.find_by_batch(batch_id)
            if any(not key.is_owned_by(principal_id) for key in keys):
                raise BatchNotFoundError()
            live = [key.id for key in keys if not key.is_revoked]
            if not live:
                raise BatchNotFoundError("Generation batch has no keys left to revoke")

            revoked = uow.assigned_keys.revoke_many(live, _now())
            uow.accounts.decrement_keys_generated(principal_id, revoked)

        logger.info("Revoked batch %s (%d key(s)) for %s", batch_id, revoked, principal_id)
        return revoked

    def revoke_key(self, principal_id: str, key_id: uuid.UUID) -> None:
        """
        Revoke a single key.

        Raises:
            KeyNotFoundError: If the key does not exist, is not owned by the
                caller, or is already revoked
        """
        self.revoke_keys(principal_id, [key_id])

    def revoke_keys(self, principal_id: str, key_ids: Iterable[uuid.UUID]) -> int:
        """
        Revoke several keys at once.

        Ownership of every key is checked before anything is changed; one
        foreign or missing key rejects the whole call.

        Returns:
            Number of keys revoked

        Raises:
            KeyNotFoundError: If any key is missing, foreign or revoked
        """
        principal_id = str(PrincipalId(principal_id))
        wanted = list(dict.fromkeys(key_ids))
        if not wanted:
            raise KeyNotFoundError("No keys given")

        uow = self.uow
        with uow.atomic():
            keys = uow.assigned_keys.find_by_ids(wanted)
            owned = [key for key in keys if key.is_owned_by(principal_id) and not key.is_revoked]
            if len(owned) != len(wanted):
                raise KeyNotFoundError(
                    "Key not found" if len(wanted) == 1 else "One or more keys not found"
                )

            revoked = uow.assigned_keys.revoke_many(wanted, _now())
            if revoked != len(wanted):
                # Lost a race with a concurrent revocation
                raise KeyNotFoundError("One or more keys not found")
            uow.accounts.decrement_keys_generated(principal_id, revoked)

        logger.info("Revoked %d key(s) for %s", revoked, principal_id)
        return revoked

    def mark_consumed(self, principal_id: str, key_id: uuid.UUID) -> AssignedKey:
        """
        Mark an active key as used.

        Returns:
            The consumed key

        Raises:
            KeyNotFoundError: If the key does not exist, is not owned by the
                caller, or is revoked
            AlreadyConsumedError: If the key was already consumed
            KeyNotActiveError: If the key has expired
        """
        principal_id = str(PrincipalId(principal_id))
        uow = self.uow
        with uow.atomic():
            key = uow.assigned_keys.find_by_id(key_id)
            if key is None or not key.is_owned_by(principal_id) or key.is_revoked:
                raise KeyNotFoundError()

            consumed = key.consume(_now())
            if not uow.assigned_keys.transition(consumed, expected_status=KeyStatus.ACTIVE):
                current = uow.assigned_keys.find_by_id(key_id)
                if current is not None and current.status == KeyStatus.CONSUMED:
                    raise AlreadyConsumedError()
                raise KeyNotActiveError()

        return consumed

    def mark_expired(self, principal_id: str, key_id: uuid.UUID) -> AssignedKey:
        """
        Mark an active key as expired.

        Key classes carry no lifetime of their own; the system that honours
        the key decides when it has run out and reports it here.

        Returns:
            The expired key

        Raises:
            KeyNotFoundError: If the key does not exist, is not owned by the
                caller, or is revoked
            KeyNotActiveError: If the key is already consumed or expired
        """
        principal_id = str(PrincipalId(principal_id))
        uow = self.uow
        with uow.atomic():
            key = uow.assigned_keys.find_by_id(key_id)
            if key is None or not key.is_owned_by(principal_id) or key.is_revoked:
                raise KeyNotFoundError()

            expired = key.expire()
            if not uow.assigned_keys.transition(expired, expected_status=KeyStatus.ACTIVE):
                raise KeyNotActiveError()

        logger.info("Key %s expired for %s", key_id, principal_id)
        return expired


def _now() -> datetime:
    return datetime.now(timezone.utc)
