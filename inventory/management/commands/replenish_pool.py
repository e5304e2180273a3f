"""
Django management command to fill pool partitions with random keys.

Without ``--count`` each selected class is only topped up when it sits
below its low watermark.
"""

import asyncio

from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import DomainException
from core.domain.value_objects import KeyClass
from inventory.application.commands.replenish_pool import ReplenishPoolCommand
from inventory.application.handlers.pool_handlers import ReplenishPoolHandler
from inventory.domain.key_source import RandomKeySource
from inventory.domain.services import InventoryReplenisher
from inventory.infrastructure.repositories.django_key_pool import DjangoKeyPool


class Command(BaseCommand):
    """Command to replenish key pools."""

    help = "Generate random keys into one or all pool partitions"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--class",
            dest="key_class",
            choices=[key_class.value for key_class in KeyClass],
            help="Key class to replenish (default: all classes)",
        )
        parser.add_argument(
            "--count",
            type=int,
            help="Exact number of keys to add instead of a watermark top-up",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - only report current availability",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        key_pool = DjangoKeyPool()
        classes = [KeyClass(options["key_class"])] if options["key_class"] else list(KeyClass)
        count = options["count"]
        if count is not None and count <= 0:
            raise CommandError("--count must be positive")

        if options["dry_run"]:
            self.stdout.write(self.style.WARNING("DRY RUN - No keys will be added"))
            for key_class in classes:
                self.stdout.write(
                    f"  - {key_class.label}: {key_pool.available_count(key_class)} available"
                )
            return

        try:
            handler = ReplenishPoolHandler(
                InventoryReplenisher(key_pool, RandomKeySource.from_settings())
            )
        except DomainException as exc:
            raise CommandError(exc.message) from exc

        async def run():
            return [
                await handler.handle(ReplenishPoolCommand(key_class=key_class.value, count=count))
                for key_class in classes
            ]

        for result in asyncio.run(run()):
            self.stdout.write(
                self.style.SUCCESS(
                    f"{result.key_class}: added {result.added}, {result.available} available"
                )
            )
