"""
CreditAccount repository port (interface).
"""
from abc import ABC, abstractmethod
from typing import Optional

from allocation.domain.credit_account import CreditAccount


class CreditAccountRepository(ABC):
    """
    Abstract repository for CreditAccount entities.

    Balance changes are expressed as guarded deltas, never as
    read-modify-write of the whole account.
    """

    @abstractmethod
    def find(self, principal_id: str) -> Optional[CreditAccount]:
        """Return the principal's account, or None if it has none."""

    @abstractmethod
    def get_or_create(self, principal_id: str) -> CreditAccount:
        """Return the principal's account, opening an empty one if needed."""

    @abstractmethod
    def deposit(self, principal_id: str, amount: int) -> CreditAccount:
        """
        Add purchased credits.

        Does not touch ``lifetime_assigned`` or ``keys_generated``.

        Raises:
            InvalidCreditAmountError: If amount is not a positive integer
        """

    @abstractmethod
    def debit(self, principal_id: str, cost: int, quantity: int) -> bool:
        """
        Charge ``cost`` credits for ``quantity`` keys if the balance covers it.

        On success the balance drops by ``cost`` while ``lifetime_assigned``
        and ``keys_generated`` grow by ``quantity``, in one conditional
        update guarded by ``balance >= cost``.

        Returns:
            True if debited, False if the balance was too low (or no account)
        """

    @abstractmethod
    def decrement_keys_generated(self, principal_id: str, count: int) -> None:
        """Lower the displayed keys-generated counter, never below zero."""
