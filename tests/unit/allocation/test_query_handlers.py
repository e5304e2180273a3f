"""
Unit tests for key and batch query handlers.
"""
import uuid

import pytest

from allocation.application.handlers.key_query_handlers import (
    GetAssignedKeyHandler,
    GetKeyStatsHandler,
    ListAssignedKeysHandler,
    ListBatchesHandler,
)
from allocation.application.queries.key_queries import (
    GetAssignedKeyQuery,
    GetKeyStatsQuery,
    ListAssignedKeysQuery,
    ListBatchesQuery,
)
from core.domain.exceptions import (
    InvalidKeyStatusError,
    InvalidPaginationError,
    KeyNotFoundError,
)
from core.domain.value_objects import KeyClass

DAY = KeyClass.EPHEMERAL_SHORT
WEEK = KeyClass.EPHEMERAL_MEDIUM


@pytest.fixture
def history(engine, stocked_pool, funded_principal):
    """Fixture for three batches: 2 day keys, 3 week keys, 1 day key."""
    return [
        engine.allocate(funded_principal, DAY, 2),
        engine.allocate(funded_principal, WEEK, 3),
        engine.allocate(funded_principal, DAY, 1),
    ]


@pytest.mark.asyncio
class TestListBatchesHandler:
    """Tests for ListBatchesHandler."""

    async def test_newest_first(self, uow, history, funded_principal):
        """Test batches are listed newest first."""
        page = await ListBatchesHandler(uow).handle(ListBatchesQuery(principal_id=funded_principal))

        assert page.total == 3
        assert [batch.id for batch in page.items] == [batch.id for batch in reversed(history)]

    async def test_filter_by_class(self, uow, history, funded_principal):
        """Test the class filter."""
        page = await ListBatchesHandler(uow).handle(
            ListBatchesQuery(principal_id=funded_principal, key_class="week")
        )

        assert page.total == 1
        assert page.items[0].size == 3

    async def test_pagination(self, uow, history, funded_principal):
        """Test page windows and page metadata."""
        handler = ListBatchesHandler(uow)

        first = await handler.handle(
            ListBatchesQuery(principal_id=funded_principal, page=1, page_size=2)
        )
        second = await handler.handle(
            ListBatchesQuery(principal_id=funded_principal, page=2, page_size=2)
        )

        assert len(first.items) == 2
        assert first.total_pages == 2
        assert first.has_next and not first.has_previous
        assert len(second.items) == 1
        assert second.has_previous and not second.has_next

    async def test_other_principal_sees_nothing(self, uow, history, other_principal_id):
        """Test batches are private."""
        page = await ListBatchesHandler(uow).handle(
            ListBatchesQuery(principal_id=other_principal_id)
        )

        assert page.total == 0
        assert page.items == []

    @pytest.mark.parametrize("page,page_size", [(0, 20), (1, 0), (1, 101), (True, 20)])
    async def test_invalid_pagination(self, uow, funded_principal, page, page_size):
        """Test out of range pages are rejected."""
        with pytest.raises(InvalidPaginationError):
            await ListBatchesHandler(uow).handle(
                ListBatchesQuery(principal_id=funded_principal, page=page, page_size=page_size)
            )


@pytest.mark.asyncio
class TestListAssignedKeysHandler:
    """Tests for ListAssignedKeysHandler."""

    async def test_list_keys(self, uow, history, funded_principal):
        """Test every live key is listed."""
        page = await ListAssignedKeysHandler(uow).handle(
            ListAssignedKeysQuery(principal_id=funded_principal)
        )

        assert page.total == 6

    async def test_revoked_keys_are_hidden(
        self, uow, revocation_service, history, funded_principal
    ):
        """Test revoked keys only show up when asked for."""
        revocation_service.revoke_batch(funded_principal, history[1].id)
        handler = ListAssignedKeysHandler(uow)

        live = await handler.handle(ListAssignedKeysQuery(principal_id=funded_principal))
        revoked = await handler.handle(
            ListAssignedKeysQuery(principal_id=funded_principal, status="revoked")
        )

        assert live.total == 3
        assert all(key.key_class == "day" for key in live.items)
        assert revoked.total == 3

    async def test_filter_by_batch(self, uow, history, funded_principal):
        """Test the batch filter keeps draw order."""
        page = await ListAssignedKeysHandler(uow).handle(
            ListAssignedKeysQuery(principal_id=funded_principal, batch_id=history[1].id)
        )

        assert [key.value for key in page.items] == [key.value for key in history[1].keys]

    async def test_filter_by_status(self, uow, revocation_service, history, funded_principal):
        """Test the status filter."""
        revocation_service.mark_consumed(funded_principal, history[0].keys[0].id)

        page = await ListAssignedKeysHandler(uow).handle(
            ListAssignedKeysQuery(principal_id=funded_principal, status="consumed")
        )

        assert [key.id for key in page.items] == [history[0].keys[0].id]

    async def test_invalid_status(self, uow, funded_principal):
        """Test unknown status filters."""
        with pytest.raises(InvalidKeyStatusError):
            await ListAssignedKeysHandler(uow).handle(
                ListAssignedKeysQuery(principal_id=funded_principal, status="lost")
            )


@pytest.mark.asyncio
class TestGetAssignedKeyHandler:
    """Tests for GetAssignedKeyHandler."""

    async def test_get_key(self, uow, history, funded_principal):
        """Test fetching an owned key."""
        key = history[0].keys[0]

        dto = await GetAssignedKeyHandler(uow).handle(
            GetAssignedKeyQuery(principal_id=funded_principal, key_id=key.id)
        )

        assert dto.value == key.value
        assert not hasattr(dto, "pool_entry_id")

    async def test_foreign_or_missing_key(self, uow, history, other_principal_id):
        """Test foreign and unknown keys look the same."""
        handler = GetAssignedKeyHandler(uow)

        with pytest.raises(KeyNotFoundError):
            await handler.handle(
                GetAssignedKeyQuery(principal_id=other_principal_id, key_id=history[0].keys[0].id)
            )
        with pytest.raises(KeyNotFoundError):
            await handler.handle(
                GetAssignedKeyQuery(principal_id=other_principal_id, key_id=uuid.uuid4())
            )


@pytest.mark.asyncio
class TestGetKeyStatsHandler:
    """Tests for GetKeyStatsHandler."""

    async def test_stats(self, uow, revocation_service, history, funded_principal):
        """Test counts by status and class, excluding revoked keys."""
        revocation_service.revoke_batch(funded_principal, history[2].id)
        revocation_service.mark_consumed(funded_principal, history[1].keys[0].id)

        stats = await GetKeyStatsHandler(uow).handle(
            GetKeyStatsQuery(principal_id=funded_principal)
        )

        assert stats.total == 5
        assert stats.by_status == {"active": 4, "consumed": 1, "expired": 0}
        assert stats.by_class == {"day": 2, "week": 3, "month": 0, "lifetime": 0}
        assert stats.balance == 94
        assert stats.keys_generated == 5

    async def test_stats_without_account(self, uow, principal_id):
        """Test a principal with nothing yet."""
        stats = await GetKeyStatsHandler(uow).handle(GetKeyStatsQuery(principal_id=principal_id))

        assert stats.total == 0
        assert stats.balance == 0

    async def test_stats_for_integer_principal(self, engine, uow, key_pool, pool_filler):
        """Test integer and string forms of a principal id see the same data."""
        pool_filler(key_pool, DAY, count=5)
        uow.accounts.deposit(42, 10)
        batch = engine.allocate(42, DAY, 2)

        stats = await GetKeyStatsHandler(uow).handle(GetKeyStatsQuery(principal_id=42))
        keys = await ListAssignedKeysHandler(uow).handle(ListAssignedKeysQuery(principal_id=42))

        assert stats.total == 2
        assert stats.balance == 8
        assert {key.id for key in keys.items} == {key.id for key in batch.keys}
