"""
In-memory implementation of KeyPool.

Each key class has its own partition guarded by its own lock, so draws of
different classes never wait for each other. Draws register compensations
with the active journal so a failing unit of work puts the entries back.
"""

import bisect
import itertools
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from core.domain.exceptions import DuplicateKeyValueError, InsufficientInventoryError
from core.domain.value_objects import KeyClass, KeyValue, validate_quantity
from core.infrastructure.journal import record_compensation
from inventory.domain.pool_entry import PoolEntry, PoolStats
from inventory.ports.key_pool import KeyPool

logger = logging.getLogger(__name__)


class _Partition:
    """Entries of one key class plus the FIFO index of available ones."""

    def __init__(self):
        self.lock = threading.Lock()
        self.entries: Dict[int, PoolEntry] = {}
        self.available: List[Tuple[datetime, int]] = []


class InMemoryKeyPool(KeyPool):
    """In-memory KeyPool for tests and single-process use."""

    def __init__(self):
        self._partitions: Dict[KeyClass, _Partition] = {
            key_class: _Partition() for key_class in KeyClass
        }
        self._values_lock = threading.Lock()
        self._values: set = set()
        self._ids = itertools.count(1)

    def _partition(self, key_class: KeyClass) -> _Partition:
        return self._partitions[KeyClass.parse(key_class)]

    def draw(
        self,
        key_class: KeyClass,
        quantity: int,
        batch_id: Optional[uuid.UUID] = None,
    ) -> List[PoolEntry]:
        validate_quantity(quantity)
        key_class = KeyClass.parse(key_class)
        batch_id = batch_id or uuid.uuid4()
        partition = self._partition(key_class)
        drawn_at = datetime.now(timezone.utc)

        with partition.lock:
            if len(partition.available) < quantity:
                raise InsufficientInventoryError(
                    requested=quantity,
                    available=len(partition.available),
                    key_class=key_class.value,
                )
            claimed = partition.available[:quantity]
            del partition.available[:quantity]
            originals = []
            drawn = []
            for _, entry_id in claimed:
                original = partition.entries[entry_id]
                updated = original.mark_drawn(batch_id, drawn_at)
                partition.entries[entry_id] = updated
                originals.append(original)
                drawn.append(updated)

        record_compensation(lambda: self._undo_draw(key_class, originals))
        logger.debug("Drew %d %s entries for batch %s", quantity, key_class.value, batch_id)
        return drawn

    def _undo_draw(self, key_class: KeyClass, originals: List[PoolEntry]) -> None:
        partition = self._partition(key_class)
        with partition.lock:
            for original in originals:
                partition.entries[original.id] = original
                bisect.insort(partition.available, original.fifo_position)

    def add_entries(
        self,
        key_class: KeyClass,
        values: Iterable[str],
        added_at: Optional[datetime] = None,
        skip_duplicates: bool = False,
    ) -> List[PoolEntry]:
        key_class = KeyClass.parse(key_class)
        values = [str(KeyValue(value)) for value in values]
        added_at = added_at or datetime.now(timezone.utc)
        partition = self._partition(key_class)

        with self._values_lock:
            seen = set()
            duplicates = []
            fresh = []
            for value in values:
                if value in self._values or value in seen:
                    duplicates.append(value)
                    continue
                seen.add(value)
                fresh.append(value)
            if duplicates and not skip_duplicates:
                raise DuplicateKeyValueError(duplicates)
            self._values.update(fresh)

            entries = [
                PoolEntry(id=next(self._ids), value=value, key_class=key_class, added_at=added_at)
                for value in fresh
            ]
            with partition.lock:
                for entry in entries:
                    partition.entries[entry.id] = entry
                    bisect.insort(partition.available, entry.fifo_position)

        record_compensation(lambda: self._undo_add(key_class, entries))
        return entries

    def _undo_add(self, key_class: KeyClass, entries: List[PoolEntry]) -> None:
        partition = self._partition(key_class)
        with self._values_lock, partition.lock:
            for entry in entries:
                partition.entries.pop(entry.id, None)
                position = entry.fifo_position
                index = bisect.bisect_left(partition.available, position)
                if index < len(partition.available) and partition.available[index] == position:
                    del partition.available[index]
                self._values.discard(entry.value)

    def available_count(self, key_class: KeyClass) -> int:
        partition = self._partition(key_class)
        with partition.lock:
            return len(partition.available)

    def stats(self) -> Dict[KeyClass, PoolStats]:
        result = {}
        for key_class, partition in self._partitions.items():
            with partition.lock:
                total = len(partition.entries)
                available = len(partition.available)
            result[key_class] = PoolStats(
                key_class=key_class,
                total=total,
                available=available,
                drawn=total - available,
            )
        return result

    def entries(self, key_class: KeyClass) -> List[PoolEntry]:
        """Snapshot of every entry in a partition, in FIFO order."""
        partition = self._partition(key_class)
        with partition.lock:
            return sorted(partition.entries.values(), key=lambda entry: entry.fifo_position)
