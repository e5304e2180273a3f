"""
Unit tests for InMemoryKeyPool.
"""
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from core.domain.exceptions import (
    DuplicateKeyValueError,
    InsufficientInventoryError,
    InvalidQuantityError,
)
from core.domain.value_objects import KeyClass, PoolEntryStatus
from core.infrastructure.journal import compensating

DAY = KeyClass.EPHEMERAL_SHORT
WEEK = KeyClass.EPHEMERAL_MEDIUM


class TestDraw:
    """Tests for drawing entries."""

    def test_draw_oldest_first(self, key_pool, pool_filler):
        """Test entries come out in FIFO order."""
        added = pool_filler(key_pool, DAY, count=5)

        drawn = key_pool.draw(DAY, 3)

        assert [entry.value for entry in drawn] == [entry.value for entry in added[:3]]
        assert key_pool.available_count(DAY) == 2

    def test_same_timestamp_ordered_by_id(self, key_pool):
        """Test ties on added_at are broken by insertion id."""
        added_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        key_pool.add_entries(DAY, ["C-1", "A-1", "B-1"], added_at=added_at)

        drawn = key_pool.draw(DAY, 3)

        assert [entry.value for entry in drawn] == ["C-1", "A-1", "B-1"]

    def test_drawn_entries_are_marked(self, key_pool, pool_filler):
        """Test drawn entries record their batch."""
        pool_filler(key_pool, DAY, count=2)
        batch_id = uuid.uuid4()

        drawn = key_pool.draw(DAY, 2, batch_id=batch_id)

        assert all(entry.status == PoolEntryStatus.DRAWN for entry in drawn)
        assert all(entry.drawn_batch_id == batch_id for entry in drawn)
        assert all(entry.drawn_at is not None for entry in drawn)

    def test_insufficient_inventory_leaves_pool_unchanged(self, key_pool, pool_filler):
        """Test a short partition rejects the draw without claiming anything."""
        pool_filler(key_pool, DAY, count=3)

        with pytest.raises(InsufficientInventoryError) as exc_info:
            key_pool.draw(DAY, 5)

        assert exc_info.value.requested == 5
        assert exc_info.value.available == 3
        assert exc_info.value.key_class == "day"
        assert key_pool.available_count(DAY) == 3

    @pytest.mark.parametrize("quantity", [0, 101, -3])
    def test_invalid_quantity(self, key_pool, pool_filler, quantity):
        """Test quantity bounds."""
        pool_filler(key_pool, DAY, count=3)

        with pytest.raises(InvalidQuantityError):
            key_pool.draw(DAY, quantity)

        assert key_pool.available_count(DAY) == 3

    def test_classes_are_independent(self, key_pool, pool_filler):
        """Test drawing one class never touches another."""
        pool_filler(key_pool, DAY, count=2)
        pool_filler(key_pool, WEEK, count=2)

        key_pool.draw(DAY, 2)

        assert key_pool.available_count(DAY) == 0
        assert key_pool.available_count(WEEK) == 2
        with pytest.raises(InsufficientInventoryError):
            key_pool.draw(DAY, 1)

    def test_failed_unit_of_work_returns_entries(self, key_pool, pool_filler):
        """Test compensation puts drawn entries back in FIFO order."""
        added = pool_filler(key_pool, DAY, count=4)

        with pytest.raises(RuntimeError):
            with compensating():
                key_pool.draw(DAY, 3)
                raise RuntimeError("later step failed")

        assert key_pool.available_count(DAY) == 4
        redrawn = key_pool.draw(DAY, 4)
        assert [entry.value for entry in redrawn] == [entry.value for entry in added]

    def test_concurrent_draws_are_exactly_once(self, key_pool, pool_filler):
        """Test parallel draws never hand out the same entry twice."""
        pool_filler(key_pool, DAY, count=100)
        barrier = threading.Barrier(10)

        def draw():
            barrier.wait()
            return key_pool.draw(DAY, 10)

        with ThreadPoolExecutor(max_workers=10) as executor:
            results = list(executor.map(lambda _: draw(), range(10)))

        values = [entry.value for batch in results for entry in batch]
        assert len(values) == 100
        assert len(set(values)) == 100
        assert key_pool.available_count(DAY) == 0

    def test_partition_lock_does_not_block_other_classes(self, key_pool, pool_filler):
        """Test a held partition only blocks its own class."""
        pool_filler(key_pool, WEEK, count=1)
        day_lock = key_pool._partitions[DAY].lock

        with day_lock:
            with ThreadPoolExecutor(max_workers=1) as executor:
                drawn = executor.submit(key_pool.draw, WEEK, 1).result(timeout=5)

        assert len(drawn) == 1


class TestAddEntries:
    """Tests for adding entries."""

    def test_add_entries(self, key_pool):
        """Test stored entries get ids and are available."""
        entries = key_pool.add_entries(WEEK, ["W-1", "W-2"])

        assert [entry.value for entry in entries] == ["W-1", "W-2"]
        assert all(entry.id is not None for entry in entries)
        assert all(entry.is_available for entry in entries)
        assert key_pool.available_count(WEEK) == 2

    def test_duplicate_value_rejects_whole_call(self, key_pool):
        """Test an existing value rejects the import atomically."""
        key_pool.add_entries(DAY, ["DUP-1"])

        with pytest.raises(DuplicateKeyValueError) as exc_info:
            key_pool.add_entries(WEEK, ["NEW-1", "DUP-1"])

        assert exc_info.value.values == ["DUP-1"]
        assert key_pool.available_count(WEEK) == 0

    def test_repeated_value_in_input(self, key_pool):
        """Test repeats inside one call are duplicates too."""
        with pytest.raises(DuplicateKeyValueError):
            key_pool.add_entries(DAY, ["R-1", "R-1"])

        assert key_pool.available_count(DAY) == 0

    def test_skip_duplicates(self, key_pool):
        """Test skipping duplicates keeps only fresh values."""
        key_pool.add_entries(DAY, ["S-1"])

        added = key_pool.add_entries(DAY, ["S-1", "S-2", "S-2"], skip_duplicates=True)

        assert [entry.value for entry in added] == ["S-2"]
        assert key_pool.available_count(DAY) == 2

    def test_drawn_value_cannot_be_reimported(self, key_pool):
        """Test drawn values stay out of circulation."""
        key_pool.add_entries(DAY, ["ONCE-1"])
        key_pool.draw(DAY, 1)

        with pytest.raises(DuplicateKeyValueError):
            key_pool.add_entries(DAY, ["ONCE-1"])

    def test_rolled_back_add_frees_values(self, key_pool):
        """Test compensation removes added entries and their values."""
        with pytest.raises(RuntimeError):
            with compensating():
                key_pool.add_entries(DAY, ["TMP-1"])
                raise RuntimeError("abort")

        assert key_pool.available_count(DAY) == 0
        assert len(key_pool.add_entries(DAY, ["TMP-1"])) == 1


class TestStats:
    """Tests for pool statistics."""

    def test_stats_cover_every_class(self, key_pool, pool_filler):
        """Test stats include empty classes."""
        pool_filler(key_pool, DAY, count=3)
        key_pool.draw(DAY, 1)

        stats = key_pool.stats()

        assert set(stats) == set(KeyClass)
        assert stats[DAY].total == 3
        assert stats[DAY].available == 2
        assert stats[DAY].drawn == 1
        assert stats[KeyClass.PERMANENT].total == 0

    def test_entries_snapshot(self, key_pool, pool_filler):
        """Test entries() lists every entry, drawn ones included."""
        pool_filler(key_pool, DAY, count=2)
        key_pool.draw(DAY, 1)

        entries = key_pool.entries(DAY)

        assert [entry.status for entry in entries] == [
            PoolEntryStatus.DRAWN,
            PoolEntryStatus.AVAILABLE,
        ]
