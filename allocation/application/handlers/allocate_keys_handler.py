"""
AllocateKeysHandler.

Handles the allocate keys command.
"""

import asyncio
import logging
import time

from asgiref.sync import sync_to_async

from allocation.application.commands.allocate_keys import AllocateKeysCommand
from allocation.application.dto.allocation_dto import AllocationResultDTO
from allocation.application.handlers.mappers import to_batch_dto, to_key_dto
from allocation.domain.events import KeysAllocated
from allocation.domain.generation_batch import GenerationBatch
from allocation.domain.services import AllocationEngine
from core.domain.cancellation import CancellationToken
from core.domain.exceptions import DomainException
from core.domain.value_objects import KeyClass
from core.infrastructure.events import event_bus as default_event_bus
from core.instrumentation import Status, StatusCode, get_tracer
from core.metrics import (
    allocation_duration_seconds,
    allocation_requests_total,
    credits_debited_total,
    errors_total,
    keys_allocated_total,
)

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


class AllocateKeysHandler:
    """Handler for AllocateKeysCommand."""

    def __init__(self, engine: AllocationEngine, event_bus=None):
        """Initialize handler with the allocation engine."""
        self.engine = engine
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: AllocateKeysCommand) -> AllocationResultDTO:
        """
        Handle allocate keys command.

        The engine runs in a worker thread. Once the command's timeout
        elapses or this coroutine is cancelled, the engine is told to abort
        at its pre-commit check. The handler still waits for the engine and
        reports what really happened: a batch that committed first is
        returned, never turned into an error.

        Args:
            command: AllocateKeysCommand

        Returns:
            AllocationResultDTO with the batch and its keys

        Raises:
            InvalidKeyClassError: If key class is unknown
            InvalidQuantityError: If quantity is out of range
            InsufficientCreditsError: If balance is too low
            InsufficientInventoryError: If the pool is short
            IdempotencyConflictError: If the idempotency key was reused
            AllocationCancelledError: If the call was cancelled or timed out
                before the engine reached commit
            StorageFailure: If storage failed
        """
        key_class = KeyClass.parse(command.key_class)
        started = time.perf_counter()

        with tracer.start_as_current_span("allocate_keys") as span:
            span.set_attribute("principal_id", command.principal_id)
            span.set_attribute("key_class", key_class.value)
            span.set_attribute("quantity", command.quantity)

            try:
                batch = await self._run(command, key_class)
            except DomainException as exc:
                allocation_requests_total.labels(key_class=key_class.value, outcome=exc.code).inc()
                errors_total.labels(error_type=exc.code, operation="allocate").inc()
                span.set_status(Status(StatusCode.ERROR, exc.message))
                logger.warning(
                    "Allocation of %s %s key(s) for %s failed: %s",
                    command.quantity,
                    key_class.value,
                    command.principal_id,
                    exc.message,
                )
                raise

            span.set_attribute("batch_id", str(batch.id))
            span.set_attribute("replayed", batch.replayed)

        cost = self.engine.policy.cost_for(batch.size)
        if batch.replayed:
            allocation_requests_total.labels(key_class=key_class.value, outcome="REPLAYED").inc()
        else:
            allocation_requests_total.labels(key_class=key_class.value, outcome="SUCCESS").inc()
            allocation_duration_seconds.labels(key_class=key_class.value).observe(
                time.perf_counter() - started
            )
            keys_allocated_total.labels(key_class=key_class.value).inc(batch.size)
            credits_debited_total.labels(key_class=key_class.value).inc(cost)
            await self.event_bus.publish(
                KeysAllocated(
                    batch_id=batch.id,
                    principal_id=batch.principal_id,
                    key_class=batch.key_class,
                    quantity=batch.size,
                    cost=cost,
                )
            )

        return AllocationResultDTO(
            batch=to_batch_dto(batch),
            keys=[to_key_dto(key) for key in batch.keys],
            credits_used=0 if batch.replayed else cost,
            replayed=batch.replayed,
        )

    async def _run(self, command: AllocateKeysCommand, key_class: KeyClass) -> GenerationBatch:
        cancellation = CancellationToken.with_timeout(command.timeout_seconds)
        task = asyncio.ensure_future(
            sync_to_async(self.engine.allocate)(
                command.principal_id,
                key_class,
                command.quantity,
                idempotency_key=command.idempotency_key,
                cancellation=cancellation,
            )
        )
        try:
            if command.timeout_seconds is None:
                return await asyncio.shield(task)
            return await asyncio.wait_for(asyncio.shield(task), timeout=command.timeout_seconds)
        except asyncio.TimeoutError:
            # The worker thread cannot be interrupted; the engine decides at
            # its pre-commit check whether the allocation goes through.
            cancellation.cancel()
            return await task
        except asyncio.CancelledError:
            cancellation.cancel()
            await self._report_abandoned(command, task)
            raise

    async def _report_abandoned(self, command: AllocateKeysCommand, task: asyncio.Future) -> None:
        """Wait for a cancelled caller's allocation and log how it ended."""
        try:
            batch = await asyncio.shield(task)
        except DomainException as exc:
            logger.info(
                "Cancelled allocation for %s ended without commit: %s",
                command.principal_id,
                exc.message,
            )
            return
        except asyncio.CancelledError:
            logger.warning(
                "Stopped waiting for cancelled allocation for %s", command.principal_id
            )
            return
        logger.warning(
            "Allocation for %s committed batch %s after its caller was cancelled",
            command.principal_id,
            batch.id,
        )
