"""
Concurrency tests for AllocationEngine over in-memory storage.

Threads start together on a barrier so their allocations overlap.
"""
import random
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from core.domain.exceptions import (
    AllocationError,
    InsufficientCreditsError,
    InsufficientInventoryError,
)
from core.domain.value_objects import KeyClass

DAY = KeyClass.EPHEMERAL_SHORT
WEEK = KeyClass.EPHEMERAL_MEDIUM


def run_concurrently(calls):
    """
    Run callables in parallel, released together.

    Returns:
        List of (result, exception) pairs in call order
    """
    barrier = threading.Barrier(len(calls))

    def run(call):
        barrier.wait()
        try:
            return call(), None
        except AllocationError as exc:
            return None, exc

    with ThreadPoolExecutor(max_workers=len(calls)) as executor:
        return list(executor.map(run, calls))


class TestConcurrentAllocation:
    """Tests for overlapping allocations."""

    def test_two_draws_of_two_from_three(
        self, engine, uow, key_pool, pool_filler, principal_id, other_principal_id
    ):
        """Test two principals racing for the last keys: one wins, one sees the remainder."""
        pool_filler(key_pool, DAY, count=3)
        uow.accounts.deposit(principal_id, 10)
        uow.accounts.deposit(other_principal_id, 10)

        outcomes = run_concurrently(
            [
                lambda: engine.allocate(principal_id, DAY, 2),
                lambda: engine.allocate(other_principal_id, DAY, 2),
            ]
        )

        batches = [batch for batch, _ in outcomes if batch is not None]
        errors = [error for _, error in outcomes if error is not None]
        assert len(batches) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], InsufficientInventoryError)
        assert errors[0].requested == 2
        assert errors[0].available == 1
        assert key_pool.available_count(DAY) == 1

        winner = batches[0].principal_id
        loser = other_principal_id if winner == principal_id else principal_id
        assert uow.accounts.find(winner).balance == 8
        assert uow.accounts.find(loser).balance == 10
        assert uow.ledger.list_for_principal(loser) == []

    def test_double_submit_cannot_overspend(self, engine, uow, key_pool, pool_filler, principal_id):
        """Test two requests for the whole balance only charge once."""
        pool_filler(key_pool, DAY, count=20)
        uow.accounts.deposit(principal_id, 5)

        outcomes = run_concurrently(
            [lambda: engine.allocate(principal_id, DAY, 5) for _ in range(2)]
        )

        errors = [error for _, error in outcomes if error is not None]
        assert len(errors) == 1
        assert isinstance(errors[0], InsufficientCreditsError)
        assert uow.accounts.find(principal_id).balance == 0
        assert key_pool.available_count(DAY) == 15
        assert len(uow.ledger.list_for_principal(principal_id)) == 1

    def test_same_idempotency_key_in_parallel(
        self, engine, uow, key_pool, pool_filler, principal_id
    ):
        """Test parallel retries of one request produce one batch."""
        pool_filler(key_pool, DAY, count=20)
        uow.accounts.deposit(principal_id, 20)

        outcomes = run_concurrently(
            [
                lambda: engine.allocate(principal_id, DAY, 3, idempotency_key="retry-me")
                for _ in range(4)
            ]
        )

        batches = [batch for batch, _ in outcomes]
        assert all(batch is not None for batch in batches)
        assert len({batch.id for batch in batches}) == 1
        assert sum(not batch.replayed for batch in batches) == 1
        assert uow.accounts.find(principal_id).balance == 17
        assert key_pool.available_count(DAY) == 17

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_conservation(self, engine, uow, key_pool, pool_filler, seed):
        """Test keys and credits are conserved under contention."""
        rng = random.Random(seed)
        principals = [f"user-{index}" for index in range(6)]
        for principal in principals:
            uow.accounts.deposit(principal, 25)
        pool_filler(key_pool, DAY, count=60)
        pool_filler(key_pool, WEEK, count=30)

        requests = [
            (rng.choice(principals), rng.choice([DAY, WEEK]), rng.randint(1, 12))
            for _ in range(24)
        ]
        outcomes = run_concurrently(
            [lambda p=p, c=c, q=q: engine.allocate(p, c, q) for p, c, q in requests]
        )

        batches = [batch for batch, _ in outcomes if batch is not None]
        assigned = [key for batch in batches for key in batch.keys]
        ledger = uow.ledger.all()

        assert len({key.value for key in assigned}) == len(assigned)
        stats = key_pool.stats()
        assert stats[DAY].drawn + stats[WEEK].drawn == len(assigned)
        assert sum(entry.quantity for entry in ledger) == len(assigned)
        assert len(ledger) == len(batches)

        for principal in principals:
            account = uow.accounts.find(principal)
            spent = sum(entry.cost for entry in ledger if entry.principal_id == principal)
            assert account.balance == 25 - spent
            assert account.balance >= 0
            assert account.lifetime_assigned == spent

    def test_fifo_across_sequential_batches(self, engine, uow, key_pool, pool_filler, principal_id):
        """Test successive batches take consecutive oldest entries."""
        added = pool_filler(key_pool, DAY, count=9)
        uow.accounts.deposit(principal_id, 9)

        values = []
        for _ in range(3):
            values.extend(key.value for key in engine.allocate(principal_id, DAY, 3).keys)

        assert values == [entry.value for entry in added]
