"""
Key lifecycle handlers: revoke batch, revoke keys, mark consumed or expired.
"""

import logging

from asgiref.sync import sync_to_async

from allocation.application.commands.revoke_keys import (
    MarkKeyConsumedCommand,
    MarkKeyExpiredCommand,
    RevokeBatchCommand,
    RevokeKeyCommand,
    RevokeKeysCommand,
)
from allocation.application.dto.allocation_dto import AssignedKeyDTO, RevocationResultDTO
from allocation.application.handlers.mappers import to_key_dto
from allocation.domain.events import BatchRevoked, KeyConsumed, KeyExpired, KeysRevoked
from allocation.domain.services import RevocationService
from core.infrastructure.events import event_bus as default_event_bus
from core.instrumentation import get_tracer
from core.metrics import keys_consumed_total, keys_revoked_total

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


class RevokeBatchHandler:
    """Handler for RevokeBatchCommand."""

    def __init__(self, revocation_service: RevocationService, event_bus=None):
        self.revocation_service = revocation_service
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: RevokeBatchCommand) -> RevocationResultDTO:
        """
        Handle revoke batch command.

        Args:
            command: RevokeBatchCommand

        Returns:
            RevocationResultDTO with the number of revoked keys

        Raises:
            BatchNotFoundError: If the batch is missing, foreign or already revoked
        """
        with tracer.start_as_current_span("revoke_batch") as span:
            span.set_attribute("batch_id", str(command.batch_id))
            revoked = await sync_to_async(self.revocation_service.revoke_batch)(
                command.principal_id, command.batch_id
            )
            span.set_attribute("revoked_count", revoked)

        keys_revoked_total.labels(scope="batch").inc(revoked)
        await self.event_bus.publish(
            BatchRevoked(
                batch_id=command.batch_id,
                principal_id=command.principal_id,
                revoked_count=revoked,
            )
        )
        return RevocationResultDTO(revoked_count=revoked)


class RevokeKeysHandler:
    """Handler for RevokeKeyCommand and RevokeKeysCommand."""

    def __init__(self, revocation_service: RevocationService, event_bus=None):
        self.revocation_service = revocation_service
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command) -> RevocationResultDTO:
        """
        Handle a single or bulk key revocation.

        Raises:
            KeyNotFoundError: If any key is missing, foreign or already revoked
        """
        if isinstance(command, RevokeKeyCommand):
            key_ids = [command.key_id]
            scope = "key"
        elif isinstance(command, RevokeKeysCommand):
            key_ids = list(command.key_ids)
            scope = "bulk"
        else:
            raise TypeError(f"Unsupported command: {type(command).__name__}")

        with tracer.start_as_current_span("revoke_keys") as span:
            span.set_attribute("key_count", len(key_ids))
            revoked = await sync_to_async(self.revocation_service.revoke_keys)(
                command.principal_id, key_ids
            )

        keys_revoked_total.labels(scope=scope).inc(revoked)
        await self.event_bus.publish(
            KeysRevoked(principal_id=command.principal_id, key_ids=key_ids)
        )
        return RevocationResultDTO(revoked_count=revoked)


class MarkKeyConsumedHandler:
    """Handler for MarkKeyConsumedCommand."""

    def __init__(self, revocation_service: RevocationService, event_bus=None):
        self.revocation_service = revocation_service
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: MarkKeyConsumedCommand) -> AssignedKeyDTO:
        """
        Handle mark consumed command.

        Raises:
            KeyNotFoundError: If the key is missing, foreign or revoked
            AlreadyConsumedError: If the key was already consumed
            KeyNotActiveError: If the key has expired
        """
        with tracer.start_as_current_span("mark_key_consumed") as span:
            span.set_attribute("key_id", str(command.key_id))
            key = await sync_to_async(self.revocation_service.mark_consumed)(
                command.principal_id, command.key_id
            )

        keys_consumed_total.inc()
        await self.event_bus.publish(KeyConsumed(key_id=key.id, principal_id=key.principal_id))
        logger.info("Key %s consumed by %s", key.id, key.principal_id)
        return to_key_dto(key)


class MarkKeyExpiredHandler:
    """Handler for MarkKeyExpiredCommand."""

    def __init__(self, revocation_service: RevocationService, event_bus=None):
        self.revocation_service = revocation_service
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: MarkKeyExpiredCommand) -> AssignedKeyDTO:
        """
        Handle mark expired command.

        Raises:
            KeyNotFoundError: If the key is missing, foreign or revoked
            KeyNotActiveError: If the key is already consumed or expired
        """
        with tracer.start_as_current_span("mark_key_expired") as span:
            span.set_attribute("key_id", str(command.key_id))
            key = await sync_to_async(self.revocation_service.mark_expired)(
                command.principal_id, command.key_id
            )

        await self.event_bus.publish(KeyExpired(key_id=key.id, principal_id=key.principal_id))
        logger.info("Key %s reported expired by %s", key.id, key.principal_id)
        return to_key_dto(key)
