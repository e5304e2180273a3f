"""
Pytest configuration and shared fixtures.
"""

import itertools
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from allocation.domain.policy import AllocationPolicy
from allocation.domain.services import AllocationEngine, RevocationService
from allocation.infrastructure.unit_of_work import DjangoUnitOfWork, InMemoryUnitOfWork
from core.domain.value_objects import KeyClass
from core.infrastructure.events import InMemoryEventBus
from inventory.infrastructure.repositories.django_key_pool import DjangoKeyPool
from inventory.infrastructure.repositories.in_memory_key_pool import InMemoryKeyPool
from inventory.ports.key_source import KeySource


class SequentialKeySource(KeySource):
    """Deterministic key source: KEY-000001, KEY-000002, ..."""

    def __init__(self, prefix: str = "KEY"):
        self.prefix = prefix
        self._counter = itertools.count(1)

    def generate(self) -> str:
        return f"{self.prefix}-{next(self._counter):06d}"


class RecordingEventHandler:
    """Collects every event it receives."""

    def __init__(self):
        self.events = []

    async def handle(self, event):
        self.events.append(event)


def fill_pool(key_pool, key_class=KeyClass.EPHEMERAL_SHORT, count=10, prefix=None):
    """
    Add ``count`` entries to a partition, each one second younger than the last.

    Returns:
        The added entries, oldest first
    """
    prefix = prefix or f"{key_class.value.upper()}-{uuid.uuid4().hex[:6]}"
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    added = []
    for index in range(count):
        added.extend(
            key_pool.add_entries(
                key_class,
                [f"{prefix}-{index:04d}"],
                added_at=start + timedelta(seconds=index),
            )
        )
    return added


@pytest.fixture
def principal_id():
    """Fixture for a unique principal."""
    return f"user-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def other_principal_id():
    """Fixture for a second principal."""
    return f"other-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def key_source():
    """Fixture for a deterministic KeySource."""
    return SequentialKeySource()


@pytest.fixture
def key_pool():
    """Fixture for an in-memory KeyPool."""
    return InMemoryKeyPool()


@pytest.fixture
def uow(key_pool):
    """Fixture for an in-memory unit of work sharing ``key_pool``."""
    return InMemoryUnitOfWork(key_pool=key_pool)


@pytest.fixture
def policy():
    """Fixture for the default pricing: one credit per key."""
    return AllocationPolicy(credits_per_key=1)


@pytest.fixture
def engine(uow, policy):
    """Fixture for an AllocationEngine over in-memory storage."""
    return AllocationEngine(uow, policy=policy)


@pytest.fixture
def revocation_service(uow):
    """Fixture for a RevocationService over in-memory storage."""
    return RevocationService(uow)


@pytest.fixture
def event_bus():
    """Fixture for an isolated event bus."""
    return InMemoryEventBus()


@pytest.fixture
def funded_principal(uow, principal_id):
    """Fixture for a principal holding 100 credits."""
    uow.accounts.deposit(principal_id, 100)
    return principal_id


@pytest.fixture
def stocked_pool(key_pool):
    """Fixture for a pool with 10 entries in every class."""
    for key_class in KeyClass:
        fill_pool(key_pool, key_class, count=10)
    return key_pool


@pytest.fixture
def django_key_pool():
    """Fixture for a Django KeyPool."""
    return DjangoKeyPool()


@pytest.fixture
def django_uow():
    """Fixture for a Django unit of work."""
    return DjangoUnitOfWork()


@pytest.fixture
def django_engine(django_uow, policy):
    """Fixture for an AllocationEngine over the database."""
    return AllocationEngine(django_uow, policy=policy)


@pytest.fixture
def recording_handler():
    """Fixture for an event handler that records what it receives."""
    return RecordingEventHandler()


@pytest.fixture
def pool_filler():
    """Fixture exposing ``fill_pool`` to tests."""
    return fill_pool
