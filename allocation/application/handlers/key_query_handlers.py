"""
Query handlers for a principal's batches and keys.

Read-only projections; they never expose pool entries.
"""

from asgiref.sync import sync_to_async

from allocation.application.dto.allocation_dto import (
    AssignedKeyDTO,
    GenerationBatchDTO,
    KeyStatsDTO,
    PageDTO,
)
from allocation.application.handlers.mappers import to_batch_dto, to_key_dto
from allocation.application.queries.key_queries import (
    GetAssignedKeyQuery,
    GetKeyStatsQuery,
    ListAssignedKeysQuery,
    ListBatchesQuery,
)
from allocation.ports.unit_of_work import UnitOfWork
from core.domain.exceptions import InvalidPaginationError, KeyNotFoundError
from core.domain.value_objects import KeyClass, KeyStatus, PrincipalId

MAX_PAGE_SIZE = 100


def _page_window(page: int, page_size: int):
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise InvalidPaginationError(f"Page must be a positive integer, got {page!r}")
    if (
        isinstance(page_size, bool)
        or not isinstance(page_size, int)
        or not 1 <= page_size <= MAX_PAGE_SIZE
    ):
        raise InvalidPaginationError(
            f"Page size must be between 1 and {MAX_PAGE_SIZE}, got {page_size!r}"
        )
    return (page - 1) * page_size, page_size


def _principal(query) -> str:
    return str(PrincipalId(query.principal_id))


class ListBatchesHandler:
    """Handler for ListBatchesQuery."""

    def __init__(self, unit_of_work: UnitOfWork):
        self.uow = unit_of_work

    async def handle(self, query: ListBatchesQuery) -> PageDTO[GenerationBatchDTO]:
        """
        Handle list batches query.

        Raises:
            InvalidKeyClassError: If the class filter is unknown
            InvalidPaginationError: If page or page size is out of range
        """
        offset, limit = _page_window(query.page, query.page_size)
        key_class = KeyClass.parse(query.key_class) if query.key_class else None
        batches, total = await sync_to_async(self.uow.batches.list_for_principal)(
            _principal(query), key_class=key_class, offset=offset, limit=limit
        )
        return PageDTO(
            items=[to_batch_dto(batch) for batch in batches],
            page=query.page,
            page_size=query.page_size,
            total=total,
        )


class ListAssignedKeysHandler:
    """Handler for ListAssignedKeysQuery."""

    def __init__(self, unit_of_work: UnitOfWork):
        self.uow = unit_of_work

    async def handle(self, query: ListAssignedKeysQuery) -> PageDTO[AssignedKeyDTO]:
        """
        Handle list keys query.

        Revoked keys are only listed when asked for with ``status='revoked'``.

        Raises:
            InvalidKeyClassError: If the class filter is unknown
            InvalidPaginationError: If page or page size is out of range
            InvalidKeyStatusError: If the status filter is unknown
        """
        offset, limit = _page_window(query.page, query.page_size)
        key_class = KeyClass.parse(query.key_class) if query.key_class else None
        status = KeyStatus.parse(query.status) if query.status else None
        keys, total = await sync_to_async(self.uow.assigned_keys.list_for_principal)(
            _principal(query),
            key_class=key_class,
            status=status,
            batch_id=query.batch_id,
            offset=offset,
            limit=limit,
        )
        return PageDTO(
            items=[to_key_dto(key) for key in keys],
            page=query.page,
            page_size=query.page_size,
            total=total,
        )


class GetAssignedKeyHandler:
    """Handler for GetAssignedKeyQuery."""

    def __init__(self, unit_of_work: UnitOfWork):
        self.uow = unit_of_work

    async def handle(self, query: GetAssignedKeyQuery) -> AssignedKeyDTO:
        """
        Handle get key query.

        Raises:
            KeyNotFoundError: If the key is missing, foreign or revoked
        """
        key = await sync_to_async(self.uow.assigned_keys.find_by_id)(query.key_id)
        if key is None or not key.is_owned_by(_principal(query)) or key.is_revoked:
            raise KeyNotFoundError()
        return to_key_dto(key)


class GetKeyStatsHandler:
    """Handler for GetKeyStatsQuery."""

    def __init__(self, unit_of_work: UnitOfWork):
        self.uow = unit_of_work

    async def handle(self, query: GetKeyStatsQuery) -> KeyStatsDTO:
        """
        Handle key stats query.

        Returns:
            KeyStatsDTO counting the principal's non-revoked keys
        """
        principal_id = _principal(query)
        counts = await sync_to_async(self.uow.assigned_keys.count_grouped)(principal_id)
        account = await sync_to_async(self.uow.accounts.find)(principal_id)

        by_status = {status.value: 0 for status in KeyStatus if status != KeyStatus.REVOKED}
        by_class = {key_class.value: 0 for key_class in KeyClass}
        for (key_class, status), count in counts.items():
            if status == KeyStatus.REVOKED:
                continue
            by_status[status.value] += count
            by_class[key_class.value] += count

        return KeyStatsDTO(
            total=sum(by_status.values()),
            by_status=by_status,
            by_class=by_class,
            balance=account.balance if account else 0,
            keys_generated=account.keys_generated if account else 0,
        )
