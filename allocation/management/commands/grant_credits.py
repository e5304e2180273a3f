"""
Django management command to credit a principal's account.

Stands in for the payment flow in development and support work.
"""

from django.core.management.base import BaseCommand, CommandError

from allocation.infrastructure.repositories.django_credit_account_repository import (
    DjangoCreditAccountRepository,
)
from core.domain.exceptions import DomainException


class Command(BaseCommand):
    """Command to add credits to an account."""

    help = "Add credits to a principal's account"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("principal_id", help="Principal to credit")
        parser.add_argument("amount", type=int, help="Credits to add")

    def handle(self, *args, **options):
        """Execute the command."""
        try:
            account = DjangoCreditAccountRepository().deposit(
                options["principal_id"], options["amount"]
            )
        except DomainException as exc:
            raise CommandError(exc.message) from exc

        self.stdout.write(
            self.style.SUCCESS(f"{account.principal_id}: balance is now {account.balance}")
        )
