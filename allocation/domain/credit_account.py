"""
CreditAccount domain entity.
"""

from dataclasses import dataclass

from core.domain.value_objects import PrincipalId


@dataclass(frozen=True)
class CreditAccount:
    """
    Credit balance of a principal.

    ``balance`` never goes negative and ``lifetime_assigned`` only grows.
    ``keys_generated`` is the user facing "keys generated" counter; it
    grows on allocation and shrinks when keys are revoked.
    """

    principal_id: str
    balance: int = 0
    lifetime_assigned: int = 0
    keys_generated: int = 0

    def __post_init__(self):
        """Validate credit account entity."""
        PrincipalId(self.principal_id)
        if self.balance < 0:
            raise ValueError("Credit balance cannot be negative")
        if self.lifetime_assigned < 0:
            raise ValueError("Lifetime assigned cannot be negative")
        if self.keys_generated < 0:
            raise ValueError("Keys generated cannot be negative")

    @classmethod
    def create(cls, principal_id: str, balance: int = 0) -> "CreditAccount":
        """Open an account with an initial balance."""
        return cls(principal_id=principal_id, balance=balance)

    def can_afford(self, cost: int) -> bool:
        """Check if balance covers cost."""
        return self.balance >= cost
