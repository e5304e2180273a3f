"""
Django management command to print pool statistics.
"""

import asyncio

from django.core.management.base import BaseCommand

from inventory.application.handlers.pool_handlers import GetPoolStatsHandler
from inventory.infrastructure.repositories.django_key_pool import DjangoKeyPool


class Command(BaseCommand):
    """Command to show total/available/drawn keys per class."""

    help = "Show key pool statistics"

    def handle(self, *args, **options):
        """Execute the command."""
        overview = asyncio.run(GetPoolStatsHandler(DjangoKeyPool()).handle())

        self.stdout.write(f"{'Class':<10} {'Total':>8} {'Available':>10} {'Drawn':>8}")
        for item in overview.classes:
            self.stdout.write(
                f"{item.label:<10} {item.total:>8} {item.available:>10} {item.drawn:>8}"
            )
        self.stdout.write(
            self.style.SUCCESS(
                f"{'All':<10} {overview.total:>8} {overview.available:>10} {overview.drawn:>8}"
            )
        )
