"""
Celery tasks for background processing.

Tasks for keeping pool partitions above their low watermark.
"""
import logging

from django.db import DatabaseError

from KeyInventoryService.celery import app

from core.domain.exceptions import StorageFailure
from core.domain.value_objects import KeyClass
from core.metrics import pool_available_keys, pool_entries_added_total

logger = logging.getLogger(__name__)


def _build_replenisher():
    from inventory.domain.key_source import RandomKeySource
    from inventory.domain.services import InventoryReplenisher
    from inventory.infrastructure.repositories.django_key_pool import DjangoKeyPool

    return InventoryReplenisher(DjangoKeyPool(), RandomKeySource.from_settings())


def _top_up(replenisher, key_class: KeyClass) -> int:
    added = len(replenisher.top_up(key_class))
    if added:
        pool_entries_added_total.labels(key_class=key_class.value, source="random").inc(added)
    pool_available_keys.labels(key_class=key_class.value).set(
        replenisher.key_pool.available_count(key_class)
    )
    return added


@app.task(bind=True, max_retries=3)
def replenish_pool_task(self, key_class: str):
    """
    Top up one partition if it is below its low watermark.

    Args:
        key_class: Key class value, e.g. ``"week"``

    Returns:
        Number of keys added
    """
    try:
        return _top_up(_build_replenisher(), KeyClass.parse(key_class))
    except (StorageFailure, DatabaseError) as exc:
        logger.error(f"Pool top-up for {key_class} failed: {exc}", exc_info=True)
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)


@app.task(bind=True, max_retries=3)
def replenish_low_pools_task(self):
    """
    Top up every partition below its low watermark.

    Returns:
        Mapping of key class value to keys added
    """
    replenisher = _build_replenisher()
    try:
        added = {key_class.value: _top_up(replenisher, key_class) for key_class in KeyClass}
    except (StorageFailure, DatabaseError) as exc:
        logger.error(f"Pool top-up failed: {exc}", exc_info=True)
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)
    logger.info("Pool top-up finished: %s", added)
    return added
